"""
Exceptions raised by SNPRecal.

Numerical degeneracies are never raised: covariance determinants,
densities and posteriors are clamped where they are computed. Data
anomalies (a record without a required annotation or allele count) are
logged and the record is left out of the model.
"""


class ConfigurationError(ValueError):
    """Fatal problem with the run's inputs or options. Not retried."""
    pass


class ExternalToolError(RuntimeError):
    """An external program (the plotting Rscript) could not be run.

    The recalibrated VCF and the curve table are already complete when
    this is raised, so callers report it without failing the run.
    """
    pass
