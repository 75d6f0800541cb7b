"""
===========================================
Cluster file
===========================================

The fitted state of a recalibration run as plain text, one record per line::

    @!MODEL,GAUSSIAN_MIXTURE_MODEL,<nGaussians>,<nDimensions>,<covarianceType>
    @!ANNOTATION,<name>,<mean>,<std>
    @!CLUSTER,<weight>,<means ...>,<covariance, row major ...>
    @!PRIOR,<known phred>,<novel phred>
    @!ALLELECOUNT,<allele count>,<prior>

Floats are written with ``repr`` so a model read back evaluates exactly
like the one that was written.
"""
import numpy as np

from . import variant_recalibrator_argument_collection as VRAC
from .gaussian_mixture_model import GaussianMixtureModel
from .prior_model import PriorModel
from .variant_recalibrator import GaussianMixtureRecalibrationModel
from ...errors import ConfigurationError
from ...log import logger


def _Floats(values):
    return ','.join(repr(float(v)) for v in values)


def WriteClusterFile(model, annotationKeys, fileName):

    gmm, prior = model.gmm, model.prior
    with open(fileName, 'w') as O:
        O.write('@!MODEL,%s,%d,%d,%s\n' % (model.name, gmm.nGaussians,
                                           gmm.nDimensions, gmm.covarianceType))
        for k, m, s in zip(annotationKeys, gmm.annotationMean, gmm.annotationSTD):
            O.write('@!ANNOTATION,%s,%s\n' % (k, _Floats([m, s])))

        for w, mu, cov in zip(gmm.weights_, gmm.means_, gmm.covariances_):
            O.write('@!CLUSTER,%s\n' % _Floats([w] + list(mu) + list(cov.ravel())))

        O.write('@!PRIOR,%s\n' % _Floats([prior.knownQualPrior, prior.novelQualPrior]))
        for c in sorted(prior.alleleCountTable):
            O.write('@!ALLELECOUNT,%d,%r\n' % (c, float(prior.alleleCountTable[c])))

    logger.info('Cluster file with %d Gaussians written to %s' % (gmm.nGaussians, fileName))

    return fileName


def ReadClusterFile(fileName):
    """Return the annotation keys and the ``RecalibrationModel`` stored in
    ``fileName``."""
    header, keys, stats, clusters, priors, table = None, [], [], [], None, {}
    with open(fileName) as I:
        for line in I:
            col = line.strip().split(',')
            if col[0] == '@!MODEL':
                header = col[1:]
            elif col[0] == '@!ANNOTATION':
                keys.append(col[1])
                stats.append([float(v) for v in col[2:4]])
            elif col[0] == '@!CLUSTER':
                clusters.append([float(v) for v in col[1:]])
            elif col[0] == '@!PRIOR':
                priors = [float(v) for v in col[1:3]]
            elif col[0] == '@!ALLELECOUNT':
                table[int(col[1])] = float(col[2])
            elif line.strip():
                raise ConfigurationError('[ERROR] Unrecognized line in cluster '
                                         'file %s: %s' % (fileName, line.strip()))

    if header is None or priors is None or not clusters or not table:
        raise ConfigurationError('[ERROR] %s is not a complete cluster file.' % fileName)

    if header[0] != VRAC.GAUSSIAN_MIXTURE_MODEL:
        raise ConfigurationError('[ERROR] Unsupported model in cluster file %s: %s' %
                                 (fileName, header[0]))

    K, d = int(header[1]), int(header[2])
    if len(keys) != d or len(clusters) != K or \
            any(len(c) != 1 + d + d * d for c in clusters):
        raise ConfigurationError('[ERROR] Cluster file %s declares %d Gaussians '
                                 'with %d annotations but holds %d Gaussians and %d annotations.' %
                                 (fileName, K, d, len(clusters), len(keys)))

    stats, clusters = np.array(stats), np.array(clusters)
    gmm = GaussianMixtureModel(K, d, covarianceType=header[3],
                               annotationMean=stats[:, 0], annotationSTD=stats[:, 1])
    gmm.SetParameters(clusters[:, 0], clusters[:, 1:d + 1],
                      clusters[:, d + 1:].reshape(K, d, d))

    prior = PriorModel(priors[0], priors[1]).SetAlleleCountTable(table)
    logger.info('Read %d Gaussians over [%s] from cluster file %s' %
                (K, ','.join(keys), fileName))

    return keys, GaussianMixtureRecalibrationModel(gmm, prior)
