"""
===============================================
Training phase of the recalibration
===============================================

``VariantRecalibrator.OnTraversalDone`` is called once the whole input has
been collected. It computes the population statistics, fits the model and
the priors and returns them as one ``RecalibrationModel``, which is the
only thing the scoring phase gets to see.
"""
from . import variant_data_manager as vdm
from . import variant_recalibrator_argument_collection as VRAC
from .gaussian_mixture_model import GaussianMixtureModel
from .prior_model import PriorModel
from ...errors import ConfigurationError
from ...log import logger


class RecalibrationModel(object):
    """A trained model. The concrete model only has to provide
    ``EvaluateVariant(annotations)``, the priors are shared.
    """
    name = None

    def __init__(self, prior):
        self.prior = prior

    def EvaluateVariant(self, annotations):
        raise NotImplementedError


class GaussianMixtureRecalibrationModel(RecalibrationModel):

    name = VRAC.GAUSSIAN_MIXTURE_MODEL

    def __init__(self, gmm, prior):
        super(GaussianMixtureRecalibrationModel, self).__init__(prior)
        self.gmm = gmm

    def EvaluateVariant(self, annotations):
        return self.gmm.Evaluate(annotations)


def _TrainGaussianMixtureModel(vrac, dataManager):

    trainingData = dataManager.GetTrainingData(vrac.RANDOM_SEED)
    gmm = GaussianMixtureModel(vrac.MAX_GAUSSIANS,
                               len(dataManager.annotationKeys),
                               backoffFactor=vrac.BACKOFF_FACTOR,
                               tol=vrac.MIN_PROB_CONVERGENCE,
                               maxIter=vrac.NITER,
                               covarianceType=vrac.COVARIANCE_TYPE,
                               randomState=vrac.RANDOM_SEED,
                               annotationMean=dataManager.annotationMean,
                               annotationSTD=dataManager.annotationSTD)

    logger.info('Training the Gaussian mixture model with %d Gaussians ...' %
                vrac.MAX_GAUSSIANS)
    gmm.Fit(trainingData)

    logger.info('The converged information of the model is: %s' % gmm.converged_)
    logger.info('The weights of the Gaussians are: %s' % gmm.weights_)
    logger.info('The means of the Gaussians are:\n%s' % gmm.means_)

    return gmm


# Model name => training function. K_NEAREST_NEIGHBORS has no entry yet.
MODEL_TRAINERS = {
    VRAC.GAUSSIAN_MIXTURE_MODEL: (_TrainGaussianMixtureModel,
                                  GaussianMixtureRecalibrationModel),
}


class VariantRecalibrator(object):

    def __init__ (self, vrac=None):

        self.VRAC = vrac if vrac else VRAC.VariantRecalibratorArgumentCollection()
        self.dataManager = vdm.VariantDataManager(
            self.VRAC.ANNOTATIONS,
            stdThreshold=self.VRAC.STD_THRESHOLD,
            minNumTrainingData=self.VRAC.MIN_NUM_TRAINING_DATA,
            maxNumTrainingData=self.VRAC.MAX_NUM_TRAINING_DATA)

    def OnTraversalDone(self, data):

        if self.VRAC.OPTIMIZATION_MODEL not in MODEL_TRAINERS:
            raise ConfigurationError('[ERROR] Variant Optimization Model %s is not '
                                     'supported. Implemented options are: %s' %
                                     (self.VRAC.OPTIMIZATION_MODEL,
                                      ', '.join(sorted(MODEL_TRAINERS))))

        self.dataManager.SetData(data)
        self.dataManager.Finalize()

        train, modelClass = MODEL_TRAINERS[self.VRAC.OPTIMIZATION_MODEL]
        model = train(self.VRAC, self.dataManager)

        prior = PriorModel(self.VRAC.KNOWN_QUAL_PRIOR, self.VRAC.NOVEL_QUAL_PRIOR)
        prior.Fit(self.dataManager.data)

        return modelClass(model, prior)
