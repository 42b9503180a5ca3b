"""blast-radius: find the services affected by changes in shared packages."""

__version__ = "1.0.0"
