"""
====================================
Options of the variant recalibrator
====================================
All the options of one recalibration run. The command line fills it in
``snprecal.runner``; ``Validate()`` must pass before any input is read.
"""
import os

from ...errors import ConfigurationError
from ...log import logger

GAUSSIAN_MIXTURE_MODEL = 'GAUSSIAN_MIXTURE_MODEL'
K_NEAREST_NEIGHBORS = 'K_NEAREST_NEIGHBORS'
COVARIANCE_TYPES = ('full', 'diag')


class VariantRecalibratorArgumentCollection(object):

    def __init__ (self, **kwargs):
        self.vcfInfile   = kwargs.get('vcfInfile')
        self.knownSites  = kwargs.get('knownSites')
        self.ANNOTATIONS = list(kwargs.get('annotations') or [])
        self.OUTPUT_PREFIX = kwargs.get('outputPrefix', 'optimizer')
        self.OUTPUT_VCF    = kwargs.get('outputVcf')  # Default: OUTPUT_PREFIX + '.vcf'
        self.CLUSTER_FILE  = kwargs.get('clusterFile')  # Default: OUTPUT_PREFIX + '.cluster'
        self.INPUT_CLUSTER_FILE = kwargs.get('inputClusterFile')  # Score with this model, no training
        self.nCPU = kwargs.get('nCPU', 1)

        # Optimization curve
        self.TARGET_TITV          = kwargs.get('targetTiTv', 2.1)
        self.DESIRED_NUM_VARIANTS = kwargs.get('desiredNumVariants', 0)
        self.QUAL_STEP            = kwargs.get('qualStep', 0.0)

        # Input filters
        self.IGNORE_ALL_INPUT_FILTERS = kwargs.get('ignoreAllFilters', False)
        self.IGNORE_INPUT_FILTERS     = set(kwargs.get('ignoreFilters') or [])

        # Priors are phred scaled
        self.KNOWN_QUAL_PRIOR     = kwargs.get('knownPrior', 9)
        self.NOVEL_QUAL_PRIOR     = kwargs.get('novelPrior', 2)
        self.QUALITY_SCALE_FACTOR = kwargs.get('qualityScaleFactor', 50.0)

        # Gaussian mixture model
        self.OPTIMIZATION_MODEL   = kwargs.get('optimizationModel', GAUSSIAN_MIXTURE_MODEL)
        self.MAX_GAUSSIANS        = kwargs.get('maxGaussians', 4)
        self.COVARIANCE_TYPE      = kwargs.get('covarianceType', 'full')
        self.BACKOFF_FACTOR       = kwargs.get('backoffFactor', 1.0)
        self.MIN_PROB_CONVERGENCE = kwargs.get('tol', 2e-3)
        self.NITER                = kwargs.get('maxIter', 150)
        self.RANDOM_SEED          = kwargs.get('randomSeed', 0)

        self.STD_THRESHOLD         = 8.0
        self.MIN_NUM_TRAINING_DATA = 1000
        self.MAX_NUM_TRAINING_DATA = 50000

        # External plotting
        self.PATH_TO_RSCRIPT   = kwargs.get('rscript')
        self.PATH_TO_RESOURCES = kwargs.get('resources', 'R/')

    @property
    def outputVcf(self):
        return self.OUTPUT_VCF if self.OUTPUT_VCF else self.OUTPUT_PREFIX + '.vcf'

    @property
    def curveDataFile(self):
        return self.OUTPUT_PREFIX + '.dat'

    @property
    def clusterFile(self):
        return self.CLUSTER_FILE if self.CLUSTER_FILE else self.OUTPUT_PREFIX + '.cluster'

    def Validate(self):

        if not self.knownSites or not os.path.isfile(self.knownSites):
            raise ConfigurationError('[ERROR] A known variant sites track is '
                                     'required. This calculation is critically '
                                     'dependent on being able to distinguish '
                                     'known and novel sites. Not found: %s' %
                                     self.knownSites)

        if not self.vcfInfile or not os.path.isfile(self.vcfInfile):
            raise ConfigurationError('[ERROR] Input VCF file not found: %s' %
                                     self.vcfInfile)

        if self.INPUT_CLUSTER_FILE and not os.path.isfile(self.INPUT_CLUSTER_FILE):
            raise ConfigurationError('[ERROR] Input cluster file not found: %s' %
                                     self.INPUT_CLUSTER_FILE)

        if not self.ANNOTATIONS:
            raise ConfigurationError('[ERROR] At least one annotation must be '
                                     'used for recalibration (-an).')

        if len(set(self.ANNOTATIONS)) != len(self.ANNOTATIONS):
            raise ConfigurationError('[ERROR] Duplicated annotations: %s' %
                                     ','.join(self.ANNOTATIONS))

        if self.OPTIMIZATION_MODEL not in (GAUSSIAN_MIXTURE_MODEL,
                                           K_NEAREST_NEIGHBORS):
            raise ConfigurationError('[ERROR] Variant Optimization Model is '
                                     'unrecognized: %s. Implemented option is '
                                     '%s.' % (self.OPTIMIZATION_MODEL,
                                              GAUSSIAN_MIXTURE_MODEL))

        if self.OPTIMIZATION_MODEL == K_NEAREST_NEIGHBORS:
            raise ConfigurationError('[ERROR] %s is not supported yet. Use %s.' %
                                     (K_NEAREST_NEIGHBORS, GAUSSIAN_MIXTURE_MODEL))

        if self.COVARIANCE_TYPE not in COVARIANCE_TYPES:
            raise ConfigurationError('[ERROR] covariance type must be one of '
                                     '%s but found: %s' %
                                     (COVARIANCE_TYPES, self.COVARIANCE_TYPE))

        if self.MAX_GAUSSIANS < 1:
            raise ConfigurationError('[ERROR] The number of Gaussians must be '
                                     'a positive integer but found: %d' %
                                     self.MAX_GAUSSIANS)

        if self.BACKOFF_FACTOR < 1.0:
            raise ConfigurationError('[ERROR] The Gaussian back off factor '
                                     'must be >= 1.0 but found: %f' %
                                     self.BACKOFF_FACTOR)

        if self.DESIRED_NUM_VARIANTS < 0:
            raise ConfigurationError('[ERROR] The desired number of variants '
                                     'must be >= 0 but found: %d' %
                                     self.DESIRED_NUM_VARIANTS)

        if self.QUALITY_SCALE_FACTOR <= 0 or self.MIN_PROB_CONVERGENCE <= 0 \
                or self.NITER < 1 or self.QUAL_STEP < 0 or self.nCPU < 1:
            raise ConfigurationError('[ERROR] quality scale factor, EM tolerance, '
                                     'EM iterations and nCPU must be positive '
                                     'and qual step must be >= 0.')

        if self.KNOWN_QUAL_PRIOR < 0 or self.NOVEL_QUAL_PRIOR < 0:
            raise ConfigurationError('[ERROR] Phred scaled priors must be >= 0.')

        # prob = 10^(-phred/10): a bigger phred gives a smaller prior.
        if self.KNOWN_QUAL_PRIOR > self.NOVEL_QUAL_PRIOR:
            logger.warning('The known prior (phred %s -> %.3f) is smaller than '
                           'the novel prior (phred %s -> %.3f), so novel sites '
                           'will score higher than known sites with the same '
                           'annotations.' %
                           (self.KNOWN_QUAL_PRIOR,
                            10.0 ** (-self.KNOWN_QUAL_PRIOR / 10.0),
                            self.NOVEL_QUAL_PRIOR,
                            10.0 ** (-self.NOVEL_QUAL_PRIOR / 10.0)))

        return self
