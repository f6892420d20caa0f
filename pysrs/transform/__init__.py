"""
Coordinate transformation for PySRS.
"""

from .coordinate_transform import (
    AXIS_SWAP,
    DATUM_SHIFT,
    FORWARD_PROJECTION,
    INVERSE_PROJECTION,
    UNIT_SCALE,
    CoordinateTransform,
    PipelineStep,
)

__all__ = [
    'AXIS_SWAP',
    'DATUM_SHIFT',
    'FORWARD_PROJECTION',
    'INVERSE_PROJECTION',
    'UNIT_SCALE',
    'CoordinateTransform',
    'PipelineStep',
]
