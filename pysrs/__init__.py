"""
PySRS: coordinate reference system definitions and transformation pipelines.

This library provides:
- A mutable CRS node tree with attribute access, builders and validation
- Import and export for WKT, PROJ.4, ESRI, USGS, PCI, GML, MapInfo and ERMapper
- An EPSG-backed authority table and projection method catalog
- Coordinate transforms between spatial references

xarray objects gain a ``.srs`` accessor when the package is imported.
"""

__version__ = "0.1.0"

from . import catalog  # noqa: F401
from .config import get_settings, override, settings  # noqa: F401
from .core import SpatialReference, cleanup  # noqa: F401
from .exceptions import (  # noqa: F401
    ExportError,
    IncompatibleCRSError,
    InvalidCRSError,
    ParameterArrayLengthError,
    ParameterNotFoundError,
    ParseError,
    SRSError,
    SRSWarning,
    UnitUnknownError,
    UnsupportedCRSError,
)
from .transform import CoordinateTransform, PipelineStep  # noqa: F401
from .tree import OpaqueNode, SRSNode  # noqa: F401
from .units import UnitRegistry, default_registry  # noqa: F401
from .validation import ValidationReport  # noqa: F401
from .crs import CRSManager, crs_manager  # noqa: F401

# Register the accessor automatically when the package is imported
from .accessors import SRSAccessor  # noqa: F401, E402

__all__ = [
    "__version__",
    "CoordinateTransform",
    "CRSManager",
    "ExportError",
    "IncompatibleCRSError",
    "InvalidCRSError",
    "OpaqueNode",
    "ParameterArrayLengthError",
    "ParameterNotFoundError",
    "ParseError",
    "PipelineStep",
    "SpatialReference",
    "SRSAccessor",
    "SRSError",
    "SRSNode",
    "SRSWarning",
    "UnitRegistry",
    "UnitUnknownError",
    "UnsupportedCRSError",
    "ValidationReport",
    "catalog",
    "cleanup",
    "crs_manager",
    "default_registry",
    "get_settings",
    "override",
    "settings",
]
