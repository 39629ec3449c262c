"""rd - release-based deployment for a single web application."""

__version__ = "0.1.0"
