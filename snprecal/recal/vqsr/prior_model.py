"""
===========================================
Priors of a variant being true
===========================================

Two independent priors multiply the mixture model likelihood:

* the allele count prior, learned from the collected population: at each
  allele count, the (smoothed) fraction of variants that are at known
  sites. It is forced to be non-decreasing in the allele count because
  very rare alleles are more often artifacts.
* the known/novel prior, two fixed phred scaled values from the command
  line.
"""
import numpy as np
from sklearn.isotonic import IsotonicRegression

from ...log import logger

MIN_ALLELE_COUNT_PRIOR = 0.001
MAX_ALLELE_COUNT_PRIOR = 0.95


def QualToProb(qual):
    """prob = 10^(-qual/10)"""
    return 10.0 ** (-qual / 10.0)


class PriorModel(object):

    def __init__(self, knownQualPrior=9, novelQualPrior=2):

        self.knownQualPrior = knownQualPrior
        self.novelQualPrior = novelQualPrior
        self.knownPrior = QualToProb(knownQualPrior)
        self.novelPrior = QualToProb(novelQualPrior)

        self.alleleCounts = None   # The observed allele counts, ascending
        self.alleleCountTable = None
        self._isotonic = None

    def Fit(self, data):
        """Learn the allele count prior from a list of ``VariantDatum``."""
        if len(data) == 0:
            raise ValueError('[ERROR] No data to learn the allele count prior.')

        ac = np.array([d.alleleCount for d in data], dtype=int)
        known = np.array([d.isKnown for d in data], dtype=float)
        if ac.min() < 1:
            raise ValueError('[ERROR] Allele counts must be >= 1 but found %d.' % ac.min())

        counts, inverse = np.unique(ac, return_inverse=True)
        numSites = np.bincount(inverse).astype(float)
        numKnown = np.bincount(inverse, weights=known)

        # Laplace smoothing, so that a single site does not give a prior of 0 or 1
        knownFraction = (numKnown + 1.0) / (numSites + 2.0)

        self._isotonic = IsotonicRegression(y_min=MIN_ALLELE_COUNT_PRIOR,
                                            y_max=MAX_ALLELE_COUNT_PRIOR,
                                            increasing=True,
                                            out_of_bounds='clip')
        self._isotonic.fit(counts.astype(float), knownFraction, sample_weight=numSites)

        self.alleleCounts = counts
        self.alleleCountTable = dict(zip(counts.tolist(),
                                         self._isotonic.predict(counts.astype(float)).tolist()))

        for c in counts[:10]:
            logger.debug('Allele count prior: AC = %d, n = %d, prior = %.4f' %
                         (c, numSites[counts == c][0], self.alleleCountTable[c]))
        logger.info('Allele count prior learned from %d variants with %d '
                    'distinct allele counts (%d - %d).' %
                    (len(ac), len(counts), counts[0], counts[-1]))

        return self

    def SetAlleleCountTable(self, table):
        """Restore the allele count prior from an ``{alleleCount: prior}``
        table, as written in a cluster file."""
        counts = np.array(sorted(table), dtype=int)
        priors = np.array([table[c] for c in counts.tolist()], dtype=float)
        if len(counts) == 0 or counts[0] < 1:
            raise ValueError('[ERROR] The allele count prior table must have '
                             'counts >= 1.')

        self._isotonic = IsotonicRegression(y_min=MIN_ALLELE_COUNT_PRIOR,
                                            y_max=MAX_ALLELE_COUNT_PRIOR,
                                            increasing=True,
                                            out_of_bounds='clip')
        self._isotonic.fit(counts.astype(float), priors)

        self.alleleCounts = counts
        self.alleleCountTable = dict(zip(counts.tolist(), priors.tolist()))

        return self

    def AlleleCountPrior(self, alleleCount):

        if self._isotonic is None:
            raise ValueError('[ERROR] The allele count prior has not been learned yet.')

        if alleleCount < 1:
            raise ValueError('[ERROR] Allele count must be >= 1 but found %d.' % alleleCount)

        if alleleCount in self.alleleCountTable:
            return self.alleleCountTable[alleleCount]

        # Interpolated between the observed counts or clipped to the tail
        return float(self._isotonic.predict([float(alleleCount)])[0])

    def KnownPrior(self, isKnown):
        return self.knownPrior if isKnown else self.novelPrior
