"""
PySRS accessor module.

This module defines the xarray accessor that provides the .srs interface.
"""

from .accessor import SRSAccessor

__all__ = ["SRSAccessor"]
