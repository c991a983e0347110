"""dwellguard: per-domain daily dwell-time budgets with automatic blocking."""

__version__ = "0.1.0"
