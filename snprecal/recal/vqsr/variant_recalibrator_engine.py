"""
===========================================
Scoring phase of the recalibration
===========================================
"""
import numpy as np

from . import variant_datum as vd
from ...log import logger

MIN_ERROR_RATE = 1e-9
ORIGINAL_QUAL_KEY = 'OQ'


def PhredScale(p):
    """-10 * log10(p) for p in (0, 1]"""
    if not 0.0 < p <= 1.0:
        raise ValueError('[ERROR] phred scale is defined for probabilities in '
                         '(0, 1] but found: %r' % p)

    return 0.0 if p == 1.0 else float(-10.0 * np.log10(p))


class VariantRecalibratorEngine(object):

    def __init__(self, model, qualityScaleFactor=50.0):
        self.model = model
        self.qualityScaleFactor = qualityScaleFactor

    def CalculatePTrue(self, datum):

        prior = self.model.prior
        return (self.model.EvaluateVariant(datum.annotations) *
                prior.AlleleCountPrior(datum.alleleCount) *
                prior.KnownPrior(datum.isKnown))

    def CalculateQual(self, pTrue):
        # There is no normalizing constant, the scale factor brings the
        # quality scores up to a usable range.
        return self.qualityScaleFactor * PhredScale(max(1.0 - pTrue, MIN_ERROR_RATE))

    def EvaluateDatum(self, datum):

        pTrue = self.CalculatePTrue(datum)
        return pTrue, self.CalculateQual(pTrue)

    def EvaluateData(self, data):

        if data and not isinstance(data[0], vd.VariantDatum):
            raise ValueError('[ERROR] The data type should be "VariantDatum" '
                             'in EvaluateData() of class VariantRecalibrator-'
                             'Engine(), but found %s' % str(type(data[0])))

        logger.info('Evaluating full set of %d variants ...' % len(data))
        for d in data:
            d.pTrue, d.qual = self.EvaluateDatum(d)

        return self


def RecalibrateContext(context, datum):
    """Write the recalibrated quality to a VCF record and keep the original
    one in INFO/OQ."""
    context.info[ORIGINAL_QUAL_KEY] = context.qual if context.qual else '.'
    context.qual = '%.2f' % datum.qual
    context.filter = ['PASS']

    return context
