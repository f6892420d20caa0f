"""
Spatial reference discovery for labelled data.

This module finds CRS definitions on xarray and pandas objects and moves
coordinates between them.
"""

from .crs_manager import CRSManager, as_spatial_reference, crs_manager

__all__ = ['CRSManager', 'as_spatial_reference', 'crs_manager']
