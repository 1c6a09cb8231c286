"""DepSentinel — dependency manifest generation and critical-advisory health checks."""

__version__ = "0.1.0"
