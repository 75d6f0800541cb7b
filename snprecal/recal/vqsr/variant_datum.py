"""
==============================================
One candidate SNV
==============================================

One ``VariantDatum`` per eligible SNV call. It is created once during the
collection pass and becomes read-only after the recalibrated ``qual`` has
been written.
"""
import numpy as np


class VariantDatum(object):

    def __init__(self):
        self.annotations         = None # Raw values in annotation-key order
        self.raw_annotations     = {}   # Keep the raw value of each variant
        self.isKnown             = False
        self.isTransition        = False
        self.alleleCount         = None
        self.qualRaw             = None
        self.pTrue               = None
        self.atTrainingSite      = False
        self.failingSTDThreshold = False
        self.variantOrder        = None # chrom:pos
        self.ref                 = None
        self.alt                 = None
        self._qual               = None

    @property
    def qual(self):
        return self._qual

    @qual.setter
    def qual(self, value):
        if self._qual is not None:
            raise AttributeError('[ERROR] The recalibrated quality of %s has '
                                 'already been set.' % self.variantOrder)
        self._qual = value

    @property
    def key(self):
        """The identity used to match a datum back to its VCF record."""
        return '%s:%s:%s' % (self.variantOrder, self.ref, self.alt)

    def ToLine(self):
        """Serialize the datum for the temporary file of a collection process."""
        return '\t'.join([self.variantOrder,
                          self.ref,
                          self.alt,
                          str(int(self.isKnown)),
                          str(int(self.isTransition)),
                          str(self.alleleCount),
                          '.' if self.qualRaw is None else repr(float(self.qualRaw)),
                          ','.join('%s=%r' % (k, float(v)) for k, v in self.raw_annotations.items())])

    @classmethod
    def FromLine(cls, line):
        col = line.rstrip('\n').split('\t')

        d = cls()
        d.variantOrder = col[0]
        d.ref, d.alt = col[1], col[2]
        d.isKnown = col[3] == '1'
        d.isTransition = col[4] == '1'
        d.alleleCount = int(col[5])
        d.qualRaw = None if col[6] == '.' else float(col[6])

        for item in col[7].split(','):
            k, v = item.split('=')
            d.raw_annotations[k] = float(v)

        d.annotations = np.array(list(d.raw_annotations.values()), dtype=float)
        d.atTrainingSite = d.isKnown

        return d
