"""SNPRecal: Variant quality score recalibration for SNV calls."""
from ._version import __version__
