"""
================================================
My own Gaussian Mixture Model for variant recalibration.
Learn form scikit-learn
================================================

Plain EM with one twist: after every M-step each covariance is multiplied
by a back off factor (>= 1.0) which spreads the Gaussians out and keeps
them from collapsing onto a handful of training variants.

The model is trained in the standardized annotation space and keeps the
population mean and standard deviation, so ``Evaluate`` takes raw
annotation vectors.
"""
import numpy as np
from scipy import linalg
from scipy.special import logsumexp
from sklearn.cluster import kmeans_plusplus

from ...errors import ConfigurationError
from ...log import logger

MIN_PROBABILITY = 1e-300
MIN_DETERMINANT = 1e-300
MIN_WEIGHT      = 1e-10
REG_COVAR       = 1e-6


def ComputePrecisionCholesky(covariance, reg=REG_COVAR):
    """Return the inverse of the lower cholesky factor of ``covariance``,
    transposed, so that ``|(x - mu) . P|^2`` is the Mahalanobis distance.

    A covariance which is not positive definite gets an increasing ridge
    added to its diagonal until it is.
    """
    d = covariance.shape[0]
    for _ in range(12):
        try:
            covChol = linalg.cholesky(covariance, lower=True)
        except linalg.LinAlgError:
            covariance = covariance + reg * np.eye(d)
            reg *= 10.0
            continue

        return linalg.solve_triangular(covChol, np.eye(d), lower=True).T

    raise ValueError('[ERROR] Ill-defined covariance matrix, probably because '
                     'of NaN or INF annotation values:\n%s' % covariance)


class GaussianMixtureModel(object):

    def __init__(self, nGaussians, nDimensions, backoffFactor=1.0, tol=2e-3,
                 maxIter=150, covarianceType='full', randomState=0,
                 annotationMean=None, annotationSTD=None):

        if nGaussians < 1:
            raise ConfigurationError('[ERROR] nGaussians must be a positive '
                                     'integer but found: %d' % nGaussians)
        if nDimensions < 1:
            raise ConfigurationError('[ERROR] nDimensions must be a positive '
                                     'integer but found: %d' % nDimensions)
        if backoffFactor < 1.0:
            raise ConfigurationError('[ERROR] The back off factor must be >= 1.0 '
                                     'but found: %f' % backoffFactor)
        if covarianceType not in ('full', 'diag'):
            raise ConfigurationError('[ERROR] Unsupported covariance type: %s' %
                                     covarianceType)

        self.nGaussians     = nGaussians
        self.nDimensions    = nDimensions
        self.backoffFactor  = backoffFactor
        self.tol            = tol
        self.maxIter        = maxIter
        self.covarianceType = covarianceType
        self.randomState    = randomState

        self.annotationMean = np.zeros(nDimensions) if annotationMean is None \
            else np.array(annotationMean, dtype=float)
        self.annotationSTD  = np.ones(nDimensions) if annotationSTD is None \
            else np.array(annotationSTD, dtype=float)

        if self.annotationMean.shape != (nDimensions,) or \
                self.annotationSTD.shape != (nDimensions,):
            raise ConfigurationError('[ERROR] The population statistics must '
                                     'have %d dimensions.' % nDimensions)

        self.weights_     = None
        self.means_       = None
        self.covariances_ = None
        self.converged_   = False
        self.nIter_       = 0

        self.logLikelihoods_ = []
        self.weightHistory_  = []
        self._precisionsChol = None
        self._logDets        = None

    def _CheckData(self, X):

        X = np.asarray(X, dtype=float)
        if X.ndim != 2:
            raise ConfigurationError('[ERROR] Training data must be a 2D array '
                                     'but found %d dimension(s).' % X.ndim)

        if X.shape[1] != self.nDimensions:
            raise ConfigurationError('[ERROR] Training data has %d annotations '
                                     'but the model is configured with %d.' %
                                     (X.shape[1], self.nDimensions))

        if X.shape[0] < self.nGaussians:
            raise ConfigurationError('[ERROR] Found %d training variants which is '
                                     'fewer than the %d Gaussians requested. '
                                     'Please lower the number of Gaussians.' %
                                     (X.shape[0], self.nGaussians))

        if not np.all(np.isfinite(X)):
            raise ValueError('[ERROR] Training data contains NaN or INF values.')

        return X

    def _ComputePrecisions(self):

        self._precisionsChol = np.array([ComputePrecisionCholesky(c)
                                         for c in self.covariances_])

        # log|Sigma| = -2 * sum(log(diag(P)))
        logDets = np.array([-2.0 * np.sum(np.log(np.diag(p)))
                            for p in self._precisionsChol])
        self._logDets = np.maximum(logDets, np.log(MIN_DETERMINANT))

    def _Initialize(self, X):

        self.means_, _ = kmeans_plusplus(X, n_clusters=self.nGaussians,
                                         random_state=self.randomState)

        # Every Gaussian starts from the covariance of the whole population
        cov = np.atleast_2d(np.cov(X, rowvar=False, bias=True))
        cov = cov + REG_COVAR * np.eye(self.nDimensions)
        if self.covarianceType == 'diag':
            cov = np.diag(np.diag(cov))

        self.covariances_ = np.tile(cov, (self.nGaussians, 1, 1))
        self.weights_ = np.full(self.nGaussians, 1.0 / self.nGaussians)
        self._ComputePrecisions()

    def _EstimateLogGaussianProb(self, X):

        n, d = X.shape
        logProb = np.empty((n, self.nGaussians))
        for k, (mu, precChol) in enumerate(zip(self.means_, self._precisionsChol)):
            y = np.dot(X - mu, precChol)
            logProb[:, k] = np.sum(np.square(y), axis=1)

        return -0.5 * (d * np.log(2 * np.pi) + self._logDets + logProb)

    def _EstimateWeightedLogProb(self, X):
        return self._EstimateLogGaussianProb(X) + np.log(self.weights_)

    def _EStep(self, X):

        weightedLogProb = self._EstimateWeightedLogProb(X)
        logNorm = logsumexp(weightedLogProb, axis=1)
        logResp = weightedLogProb - logNorm[:, np.newaxis]

        return logNorm, logResp

    def _MStep(self, X, resp):

        n, d = X.shape
        nk = resp.sum(axis=0) + 10 * np.finfo(resp.dtype).eps
        means = np.dot(resp.T, X) / nk[:, np.newaxis]

        covariances = np.empty((self.nGaussians, d, d))
        for k in range(self.nGaussians):
            diff = X - means[k]
            covariances[k] = np.dot(resp[:, k] * diff.T, diff) / nk[k]
            covariances[k].flat[::d + 1] += REG_COVAR
            if self.covarianceType == 'diag':
                covariances[k] = np.diag(np.diag(covariances[k]))

        weights = np.maximum(nk / n, MIN_WEIGHT)

        self.weights_     = weights / weights.sum()
        self.means_       = means
        self.covariances_ = covariances * self.backoffFactor
        self._ComputePrecisions()

    def Fit(self, X):
        """Fit the mixture to standardized training vectors ``X`` (n x d)."""
        X = self._CheckData(X)

        self._Initialize(X)
        self.converged_ = False
        self.logLikelihoods_ = []
        self.weightHistory_ = []

        floor = np.log(MIN_PROBABILITY)
        preLogLikelihood = -np.inf
        for i in range(1, self.maxIter + 1):

            logNorm, logResp = self._EStep(X)
            logLikelihood = np.maximum(logNorm, floor).sum()
            self._MStep(X, np.exp(logResp))

            self.nIter_ = i
            self.logLikelihoods_.append(logLikelihood)
            self.weightHistory_.append(self.weights_.copy())
            logger.debug('EM iteration %d, log likelihood of training set: %f' %
                         (i, logLikelihood))

            if logLikelihood - preLogLikelihood < self.tol:
                self.converged_ = True
                break

            preLogLikelihood = logLikelihood

        if self.converged_:
            logger.info('EM converged after %d iterations, the log likelihood '
                        'of the training set is %f.' % (self.nIter_, self.logLikelihoods_[-1]))
        else:
            logger.warning('EM stopped after reaching the maximum of %d iterations '
                           'without converging.' % self.maxIter)

        self._Freeze()

        return self

    def _Freeze(self):

        for a in (self.weights_, self.means_, self.covariances_,
                  self._precisionsChol, self._logDets):
            a.setflags(write=False)

    def SetParameters(self, weights, means, covariances):
        """Restore a fitted mixture, e.g. one read back from a cluster file."""
        weights = np.array(weights, dtype=float)
        means = np.array(means, dtype=float)
        covariances = np.array(covariances, dtype=float)

        K, d = self.nGaussians, self.nDimensions
        if weights.shape != (K,) or means.shape != (K, d) or covariances.shape != (K, d, d):
            raise ConfigurationError('[ERROR] Expected %d Gaussians with %d '
                                     'dimensions but found weights %s, means %s '
                                     'and covariances %s.' %
                                     (K, d, weights.shape, means.shape, covariances.shape))

        self.weights_, self.means_, self.covariances_ = weights, means, covariances
        self._ComputePrecisions()
        self._Freeze()

        return self

    def Standardize(self, vector):

        x = np.asarray(vector, dtype=float)
        if x.shape != (self.nDimensions,):
            raise ConfigurationError('[ERROR] Annotation vector has shape %s but '
                                     'the model is trained with %d annotations.' %
                                     (x.shape, self.nDimensions))

        return (x - self.annotationMean) / self.annotationSTD

    def Evaluate(self, vector):
        """The mixture density of a raw annotation vector."""
        return self.EvaluateStandardized(self.Standardize(vector))

    def EvaluateStandardized(self, x):

        if self.means_ is None:
            raise ValueError('[ERROR] The Gaussian mixture model must be fitted '
                             'before evaluating variants.')

        x = np.asarray(x, dtype=float)
        if x.shape != (self.nDimensions,):
            raise ConfigurationError('[ERROR] Annotation vector has shape %s but '
                                     'the model is trained with %d annotations.' %
                                     (x.shape, self.nDimensions))

        logProb = logsumexp(self._EstimateWeightedLogProb(x[np.newaxis, :]), axis=1)[0]
        if np.isnan(logProb):
            return MIN_PROBABILITY

        return max(float(np.exp(logProb)), MIN_PROBABILITY)
