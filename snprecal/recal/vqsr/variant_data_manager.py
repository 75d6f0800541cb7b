"""
================================================
Collect, normalize and select variant data
================================================

``VariantDataManager`` holds the population of ``VariantDatum`` records
gathered in the collection pass and the per-annotation mean and standard
deviation computed from it. The same transform is used for the training
data and for every variant scored afterwards.
"""
import time

import numpy as np

from . import variant_datum as vd
from ...errors import ConfigurationError
from ...log import logger
from .. import utils
from ..vcfutils import Context

TRANSITIONS = set([frozenset('AG'), frozenset('CT')])
BASES = set('ACGT')


class VariantDataManager(object):

    def __init__(self, annotationKeys, data=None, stdThreshold=8.0,
                 minNumTrainingData=1000, maxNumTrainingData=50000):

        self.annotationKeys = list(annotationKeys)
        self.stdThreshold = stdThreshold
        self.minNumTrainingData = minNumTrainingData
        self.maxNumTrainingData = maxNumTrainingData

        self.annotationMean = None
        self.annotationSTD  = None
        self.standardizedData = None
        self.finalized = False

        self.data = [] # list <VariantDatum>
        if data:
            self.SetData(data)

    def AddDatum(self, d):

        if not isinstance(d, vd.VariantDatum):
            raise ValueError('[ERROR] The data type should be "VariantDatum" '
                             'in VariantDataManager(), but found %s' % str(type(d)))

        if self.finalized:
            raise ValueError('[ERROR] Can not add data after the population '
                             'statistics have been computed.')

        if set(d.raw_annotations) != set(self.annotationKeys):
            raise ConfigurationError('[ERROR] The annotations of %s are [%s], '
                                     'which differ from the annotations of this '
                                     'run: [%s]' %
                                     (d.variantOrder, ','.join(d.raw_annotations),
                                      ','.join(self.annotationKeys)))

        d.annotations = np.array([d.raw_annotations[k] for k in self.annotationKeys],
                                 dtype=float)
        self.data.append(d)

        return self

    def SetData(self, data):

        for d in data:
            self.AddDatum(d)

        return self

    def Finalize(self):
        """Compute the population statistics once."""
        if self.finalized:
            return self

        if not self.data:
            raise ValueError('[ERROR] No variant data has been collected, the '
                             'annotation mean and standard deviation are undefined.')

        data = np.array([d.annotations for d in self.data], dtype=float)
        mean = data.mean(axis=0)
        std  = data.std(axis=0)

        # foundZeroVarianceAnnotation
        if any(std < 1e-5):
            raise ConfigurationError('[ERROR] Found annotations with zero variance: '
                                     '%s. They must be excluded before proceeding.' %
                                     ','.join(k for k, s in zip(self.annotationKeys, std)
                                              if s < 1e-5))

        self.annotationMean = mean
        self.annotationSTD  = std

        # Each data now is (x - mean)/std
        self.standardizedData = (data - mean) / std
        for i, z in enumerate(self.standardizedData):
            # trim data by standard deviation threshold and mark failing data
            # for exclusion later
            self.data[i].failingSTDThreshold = bool(np.any(np.abs(z) > self.stdThreshold))

        for a in (self.annotationMean, self.annotationSTD, self.standardizedData):
            a.setflags(write=False)

        self.finalized = True
        for k, m, s in zip(self.annotationKeys, mean, std):
            logger.info('Annotation %s: mean = %.4f, std = %.4f' % (k, m, s))

        return self

    def Standardize(self, vector):

        if not self.finalized:
            raise ValueError('[ERROR] Finalize() must be called before standardizing.')

        x = np.asarray(vector, dtype=float)
        if x.shape != (len(self.annotationKeys),):
            raise ConfigurationError('[ERROR] Annotation vector has shape %s, but '
                                     '%d annotations are used in this run.' %
                                     (x.shape, len(self.annotationKeys)))

        return (x - self.annotationMean) / self.annotationSTD

    def GetTrainingData(self, randomState=0):
        """The standardized annotations of the known sites which pass the
        standard deviation threshold."""
        if not self.finalized:
            raise ValueError('[ERROR] Finalize() must be called before selecting '
                             'the training data.')

        idx = [i for i, d in enumerate(self.data)
               if d.atTrainingSite and not d.failingSTDThreshold]
        logger.info('Training with %d variants after standard deviation '
                    'thresholding.' % len(idx))

        if len(idx) < self.minNumTrainingData:
            logger.warning('Training with very few variant sites! Please check '
                           'the optimization curve to ensure the quality of the '
                           'model is reliable.')

        if len(idx) > self.maxNumTrainingData:
            logger.warning('Very large training set detected. Downsampling to %d '
                           'training variants.' % self.maxNumTrainingData)

            rng = np.random.RandomState(randomState)
            idx = sorted(rng.permutation(idx)[:self.maxNumTrainingData])

        return self.standardizedData[idx]


def LoadKnownSitesFromVCF(vcffile):
    """
    Just record the known site positions
    """
    logger.info('Loading known sites from VCF %s %s' % (vcffile, time.asctime()))

    n, dataSet = 0, set()
    with utils.Open(vcffile, 'r') as I:
        for line in I:
            if line.startswith('#') or not line.strip():
                continue

            n += 1
            if n % 100000 == 0:
                logger.info('** Loading lines %d %s' % (n, time.asctime()))

            col = line.strip().split()
            dataSet.add(col[0] + ':' + col[1])  # just get the positions

    logger.info('Finish loading %d known sites from %d lines. %s' %
                (len(dataSet), n, time.asctime()))

    return dataSet


def IsTransition(ref, alt):
    return frozenset([ref.upper(), alt.upper()]) in TRANSITIONS


def IsBiallelicSNP(context):

    if len(context.alt) != 1:
        return False

    ref, alt = context.ref.upper(), context.alt[0].upper()
    return len(ref) == 1 and len(alt) == 1 and ref in BASES and alt in BASES and ref != alt


def PassFilters(context, ignoreAllFilters=False, ignoreFilters=None):

    if not context.isFiltered or ignoreAllFilters:
        return True

    return bool(ignoreFilters) and set(context.filter).issubset(ignoreFilters)


def IsEligible(context, ignoreAllFilters=False, ignoreFilters=None):
    """Only unfiltered (or explicitly ignored) biallelic SNPs are recalibrated."""
    return IsBiallelicSNP(context) and PassFilters(context, ignoreAllFilters, ignoreFilters)


def GetAlleleCount(context):
    """
    The number of ALT chromosomes. Prefer the genotypes and fall back to
    INFO/AC. Return None if neither is available.
    """
    gts = context.Genotypes()
    if gts:
        return sum(g.count('1') for g in gts)

    ac = context.info.get('AC')
    if ac is None:
        return None

    try:
        return int(float(ac.split(',')[0]))
    except ValueError:
        return None


def ExtractVariantDatum(context, annotationKeys, knownSites):
    """
    Build the ``VariantDatum`` of an eligible record. Return the datum and
    ``None``, or ``None`` and the reason why the record can not be used.
    """
    raw = {}
    for k in annotationKeys:
        v = context.qual if k == 'QUAL' else context.info.get(k)
        if v is None or v == '.':
            return None, 'missing annotation %s' % k

        try:
            raw[k] = float(v.split(',')[0]) if isinstance(v, str) else float(v)
        except ValueError:
            return None, 'malformed annotation %s=%s' % (k, v)

        if not np.isfinite(raw[k]):
            return None, 'non-finite annotation %s=%s' % (k, v)

    alleleCount = GetAlleleCount(context)
    if alleleCount is None:
        return None, 'no genotypes or INFO/AC to count alleles'

    if alleleCount < 1:
        return None, 'allele count is 0'

    datum = vd.VariantDatum()
    datum.variantOrder = context.chrom + ':' + str(context.pos)
    datum.ref = context.ref.upper()
    datum.alt = context.alt[0].upper()
    datum.raw_annotations = raw
    datum.annotations = np.array([raw[k] for k in annotationKeys], dtype=float)
    datum.isKnown = datum.variantOrder in knownSites
    datum.atTrainingSite = datum.isKnown
    datum.isTransition = IsTransition(datum.ref, datum.alt)
    datum.alleleCount = alleleCount
    datum.qualRaw = None if context.qual in (None, '.') else float(context.qual)

    return datum, None


def LoadDataSet(lines, annotationKeys, knownSites, ignoreAllFilters=False,
                ignoreFilters=None):
    """
    Collect the ``VariantDatum`` of every eligible record in ``lines``,
    which are VCF data lines (header lines are skipped).
    """
    logger.info('Loading data set %s' % time.asctime())

    n, data, anomaly = 0, [], 0
    for line in lines:
        if line.startswith('#'):
            continue

        n += 1
        if n % 100000 == 0:
            logger.info('** Loading lines %d %s' % (n, time.asctime()))

        context = Context.from_line(line)
        if not IsEligible(context, ignoreAllFilters, ignoreFilters):
            continue

        datum, reason = ExtractVariantDatum(context, annotationKeys, knownSites)
        if datum is None:
            anomaly += 1
            logger.debug('Skip %s:%d, %s.' % (context.chrom, context.pos, reason))
            continue

        data.append(datum)

    if anomaly:
        logger.info('%d eligible records were excluded because of missing or '
                    'malformed annotations or allele counts.' % anomaly)

    logger.info('Finish loading data set: %d variants from %d lines. %s' %
                (len(data), n, time.asctime()))

    return data
