"""spotsync - Cross-store synchronization for chemical spot-test records.

This package moves, validates, compares and reconciles color-test
reference records between an embedded local dataset and a hosted
document store.
"""

__version__ = "0.4.0"
__all__ = ["__version__"]
