"""Background data consistency checker for replicated document stores."""

__version__ = "0.1.0"
