"""Multi-page dev server and build for single-page style apps."""

__version__ = "0.1.0"
