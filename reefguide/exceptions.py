"""
Exceptions
==========

Error types raised by the site search engine.

Fatal errors (raised before any candidate is processed):
    - ConfigurationError: malformed criteria bounds, unknown criterion names,
      bad search parameters or mismatched inputs

Per-candidate errors (caught by the search driver and recorded as
``qc_flag = 1`` on the affected candidate):
    - GeometryError: degenerate or CRS-mismatched geometry
    - NoNearbyReefError: no reef outline within the search radius
"""


class ConfigurationError(ValueError):
    """Raised when thresholds or search parameters are invalid."""
    pass


class GeometryError(ValueError):
    """Raised when a geometry is degenerate or the CRSs of two operands differ."""
    pass


class NoNearbyReefError(LookupError):
    """Raised when no reef outline lies within the edge search radius."""
    pass
