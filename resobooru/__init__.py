"""Resonite screenshot importer for Oxibooru."""

__version__ = "0.1.0"
