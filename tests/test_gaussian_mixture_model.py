"""Test the Gaussian mixture model
"""
import numpy as np
import pytest

from snprecal.errors import ConfigurationError
from snprecal.recal.vqsr.gaussian_mixture_model import GaussianMixtureModel, MIN_PROBABILITY


def two_clusters(n=200, scale=0.5, seed=1):
    rng = np.random.RandomState(seed)
    return np.vstack([rng.normal(0.0, scale, size=(n, 2)),
                      rng.normal(5.0, scale, size=(n, 2))])


def sorted_means(gmm):
    order = np.argsort(gmm.means_[:, 0])
    return gmm.means_[order], gmm.weights_[order], gmm.covariances_[order]


def test_two_clusters_are_found():
    gmm = GaussianMixtureModel(2, 2, randomState=0).Fit(two_clusters())

    means, weights, _ = sorted_means(gmm)
    assert np.allclose(means[0], [0.0, 0.0], atol=0.3)
    assert np.allclose(means[1], [5.0, 5.0], atol=0.3)
    assert np.allclose(weights, [0.5, 0.5], atol=0.1)

    # A point between the clusters is less likely than the cluster centers
    assert gmm.Evaluate([0.0, 0.0]) > gmm.Evaluate([2.5, 2.5])
    assert gmm.Evaluate([5.0, 5.0]) > gmm.Evaluate([2.5, 2.5])


def test_weights_sum_to_one_every_iteration():
    gmm = GaussianMixtureModel(3, 2, backoffFactor=1.2, randomState=0).Fit(two_clusters())

    assert len(gmm.weightHistory_) == gmm.nIter_
    for w in gmm.weightHistory_:
        assert abs(w.sum() - 1.0) < 1e-9
        assert np.all(w > 0)


def test_convergence_is_recorded():
    gmm = GaussianMixtureModel(2, 2, maxIter=150, randomState=0).Fit(two_clusters())
    assert gmm.converged_
    assert gmm.nIter_ < 150
    assert len(gmm.logLikelihoods_) == gmm.nIter_

    gmm = GaussianMixtureModel(2, 2, tol=1e-12, maxIter=2, randomState=0).Fit(two_clusters())
    assert not gmm.converged_
    assert gmm.nIter_ == 2


def test_evaluate_is_deterministic_and_positive():
    X = two_clusters()
    gmm1 = GaussianMixtureModel(2, 2, randomState=3).Fit(X)
    gmm2 = GaussianMixtureModel(2, 2, randomState=3).Fit(X)

    for v in ([0.0, 0.0], [5.0, 5.0], [1e4, -1e4], [2.5, 2.5]):
        p = gmm1.Evaluate(v)
        assert p >= MIN_PROBABILITY
        assert p == gmm1.Evaluate(v)
        assert p == gmm2.Evaluate(v)

    # Far away from every Gaussian the density is floored, not zero
    assert gmm1.Evaluate([1e4, -1e4]) == MIN_PROBABILITY


def test_evaluate_uses_population_statistics():
    X = two_clusters()
    mean, std = np.array([10.0, -3.0]), np.array([2.0, 4.0])

    plain = GaussianMixtureModel(2, 2, randomState=0).Fit(X)
    scaled = GaussianMixtureModel(2, 2, randomState=0, annotationMean=mean,
                                  annotationSTD=std).Fit(X)

    raw = np.array([5.0, 5.0]) * std + mean
    assert scaled.Evaluate(raw) == pytest.approx(plain.Evaluate([5.0, 5.0]))


def test_backoff_spreads_out_the_gaussians():
    X = two_clusters()

    # One Gaussian: the covariance is the sample covariance times the factor
    g1 = GaussianMixtureModel(1, 2, backoffFactor=1.0, randomState=0).Fit(X)
    g2 = GaussianMixtureModel(1, 2, backoffFactor=1.5, randomState=0).Fit(X)
    assert np.allclose(g2.covariances_, 1.5 * g1.covariances_)

    # Matched Gaussians of two well separated clusters
    g1 = GaussianMixtureModel(2, 2, backoffFactor=1.0, randomState=0).Fit(X)
    g2 = GaussianMixtureModel(2, 2, backoffFactor=1.5, randomState=0).Fit(X)
    _, _, c1 = sorted_means(g1)
    _, _, c2 = sorted_means(g2)
    for a, b in zip(c1, c2):
        assert np.trace(b) >= np.trace(a)
        assert np.linalg.det(b) >= np.linalg.det(a)


def test_diagonal_covariance():
    gmm = GaussianMixtureModel(2, 2, covarianceType='diag', randomState=0).Fit(two_clusters())
    for c in gmm.covariances_:
        assert c[0, 1] == 0.0 and c[1, 0] == 0.0


def test_fitted_arrays_are_frozen():
    gmm = GaussianMixtureModel(2, 2, randomState=0).Fit(two_clusters())
    with pytest.raises(ValueError):
        gmm.means_[0, 0] = 1.0


def test_degenerate_training_data_does_not_fail():
    # All training vectors on a line: the covariances are singular
    x = np.linspace(-1, 1, 50)
    X = np.column_stack([x, 2 * x])

    gmm = GaussianMixtureModel(2, 2, randomState=0).Fit(X)
    assert np.isfinite(gmm.Evaluate([0.0, 0.0]))
    assert abs(gmm.weights_.sum() - 1.0) < 1e-9


def test_configuration_errors():
    X = two_clusters()

    with pytest.raises(ConfigurationError):
        GaussianMixtureModel(4, 2).Fit(X[:3])

    with pytest.raises(ConfigurationError):
        GaussianMixtureModel(2, 3).Fit(X)

    with pytest.raises(ConfigurationError):
        GaussianMixtureModel(2, 2).Fit(X[:, 0])

    with pytest.raises(ConfigurationError):
        GaussianMixtureModel(0, 2)

    with pytest.raises(ConfigurationError):
        GaussianMixtureModel(2, 2, backoffFactor=0.9)

    with pytest.raises(ConfigurationError):
        GaussianMixtureModel(2, 2, covarianceType='tied')

    gmm = GaussianMixtureModel(2, 2, randomState=0).Fit(X)
    with pytest.raises(ConfigurationError):
        gmm.Evaluate([1.0, 2.0, 3.0])
