"""Favicon discovery and download pipeline."""

__version__ = "0.1.0"
