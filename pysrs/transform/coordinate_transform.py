"""
Coordinate transformation between two spatial references.

Building a ``CoordinateTransform`` only checks that a sensible path exists
and records the steps of the pipeline; no coordinates are touched until
``transform`` is called. The projection engine is a pyproj ``Transformer``
created lazily, one per thread, from the WKT of both sides.

Coordinates are always given easting/longitude first, whatever the axis order
declared by either definition.
"""

import logging
import threading
from typing import NamedTuple, Optional, Tuple

import numpy as np
from pyproj import CRS, Transformer
from pyproj.exceptions import CRSError, ProjError

from .. import config, validation
from ..core import SpatialReference, _same_datum, normalize_datum_name
from ..exceptions import IncompatibleCRSError, InvalidCRSError
from ..formats.wkt import format_wkt
from ..tree.node import SRSNode

logger = logging.getLogger(__name__)

# Pipeline step kinds
AXIS_SWAP = "axis_swap"
UNIT_SCALE = "unit_scale"
INVERSE_PROJECTION = "inverse_projection"
DATUM_SHIFT = "datum_shift"
FORWARD_PROJECTION = "forward_projection"


class PipelineStep(NamedTuple):
    """One stage of a transform pipeline, e.g. ``("datum_shift", "NAD27 -> WGS84")``."""

    kind: str
    detail: str


def _check_side(srs: SpatialReference, role: str) -> SRSNode:
    if srs is None:
        raise InvalidCRSError(f"{role} spatial reference is missing")
    if srs.is_released:
        raise InvalidCRSError(f"{role} spatial reference has been released")
    if srs.root is None:
        raise InvalidCRSError(f"{role} spatial reference is empty")
    report = validation.validate(srs.root, strict=False)
    problems = report.by_category(validation.STRUCTURE)
    if problems:
        details = "; ".join(str(f) for f in problems)
        raise InvalidCRSError(f"{role} spatial reference is invalid: {details}")
    return srs.root


def _datum_holder(root: SRSNode) -> Optional[SRSNode]:
    """GEOGCS or GEOCCS carrying the datum, if it has a DATUM and SPHEROID."""
    for keyword in ("GEOGCS", "GEOCCS"):
        node = root.get_node(keyword)
        if node is not None:
            datum = node.get_node("DATUM")
            if datum is not None and datum.get_node("SPHEROID") is not None:
                return node
            return None
    return None


def _has_wgs84_path(srs: SpatialReference, holder: SRSNode) -> bool:
    datum = holder.get_node("DATUM")
    if normalize_datum_name(datum.name) == "wgs1984":
        return True
    return bool(datum.find_children("TOWGS84"))


def _is_authority_coded(srs: SpatialReference) -> bool:
    for target in (None, "GEOGCS"):
        if (srs.authority_name(target) or "").upper() == "EPSG":
            return True
    return False


def _axis_order(srs: SpatialReference) -> Tuple[str, ...]:
    horizontal = srs._horizontal() or srs.root
    axes = horizontal.find_children("AXIS") if horizontal is not None else []
    if axes:
        return tuple((axis.child_value(1) or "").upper() for axis in axes)
    if srs.is_geocentric():
        return ("OTHER", "EAST", "NORTH")
    return ("EAST", "NORTH")


class CoordinateTransform:
    """
    Transform between two spatial references.

    The handle borrows both references: it adds an owner to each while it is
    alive and drops it on ``destroy``. All state derived at construction is
    immutable, so one handle may be shared between threads.

    Parameters
    ----------
    source, target : SpatialReference
        Systems to transform between
    allow_ballpark : bool, optional
        Accept a datum change with no known shift parameters (default from
        ``config.settings.allow_ballpark``)

    Raises
    ------
    InvalidCRSError
        If either side is empty, released or structurally invalid
    IncompatibleCRSError
        If no sensible path exists between the two systems

    Examples
    --------
    >>> wgs84 = SpatialReference.from_user_input("WGS84")
    >>> utm = wgs84.clone()
    >>> utm.set_utm(33)
    >>> with CoordinateTransform(wgs84, utm) as ct:
    ...     ct.transform(15.0, 0.0)
    """

    def __init__(self, source: SpatialReference, target: SpatialReference,
                 allow_ballpark: Optional[bool] = None):
        if allow_ballpark is None:
            allow_ballpark = config.settings.allow_ballpark
        source_root = _check_side(source, "Source")
        target_root = _check_side(target, "Target")
        self._source = source
        self._target = target
        self._allow_ballpark = bool(allow_ballpark)
        self._local = threading.local()
        self._destroyed = False

        steps = []
        if source.is_local() or target.is_local():
            if not (source.is_local() and target.is_local() and source.is_same(target)):
                raise IncompatibleCRSError(
                    "A LOCAL_CS can only be transformed to an identical LOCAL_CS"
                )
            self._identity = True
        else:
            if source_root.kind == "VERT_CS" or target_root.kind == "VERT_CS":
                raise IncompatibleCRSError("Vertical-only systems cannot be transformed")
            source_datum = _datum_holder(source_root)
            target_datum = _datum_holder(target_root)
            if source_datum is None or target_datum is None:
                side = "Source" if source_datum is None else "Target"
                raise IncompatibleCRSError(f"{side} system has no datum and ellipsoid")
            self._identity = source.is_same(target)
            steps.extend(self._leading_steps(source))
            if not _same_datum(source_datum, target_datum):
                self._check_shift_path(source, source_datum, target, target_datum)
                steps.append(PipelineStep(DATUM_SHIFT, "{} -> {}".format(
                    source_datum.get_node("DATUM").name, target_datum.get_node("DATUM").name)))
            steps.extend(self._trailing_steps(target))

        self._steps = tuple(steps)
        self._source_axes = _axis_order(source)
        self._target_axes = _axis_order(target)
        self._source_units = source.linear_units() if source.is_projected() \
            else source.angular_units()
        self._target_units = target.linear_units() if target.is_projected() \
            else target.angular_units()
        self._source_wkt = format_wkt(source_root)
        self._target_wkt = format_wkt(target_root)
        source.reference()
        target.reference()
        logger.debug("Built transform with %d steps (identity=%s)", len(self._steps),
                     self._identity)

    # Construction helpers --------------------------------------------------

    def _check_shift_path(self, source: SpatialReference, source_datum: SRSNode,
                          target: SpatialReference, target_datum: SRSNode) -> None:
        if _has_wgs84_path(source, source_datum) and _has_wgs84_path(target, target_datum):
            return
        if _is_authority_coded(source) and _is_authority_coded(target):
            return
        if self._allow_ballpark:
            logger.warning("No datum shift parameters between %s and %s; using a ballpark "
                           "transformation", source_datum.get_node("DATUM").name,
                           target_datum.get_node("DATUM").name)
            return
        raise IncompatibleCRSError(
            "Datums differ and neither TOWGS84 parameters nor authority codes give a "
            "shift path: {} -> {}".format(source_datum.get_node("DATUM").name,
                                          target_datum.get_node("DATUM").name)
        )

    @staticmethod
    def _leading_steps(srs: SpatialReference):
        steps = []
        if _axis_order(srs)[:1] in (("NORTH",), ("SOUTH",)):
            steps.append(PipelineStep(AXIS_SWAP, "northing/latitude first -> x/y"))
        if srs.is_projected():
            name, factor = srs.linear_units()
            if factor != 1.0:
                steps.append(PipelineStep(UNIT_SCALE, f"{name} -> metre"))
            steps.append(PipelineStep(INVERSE_PROJECTION, srs.projection_method() or ""))
        elif srs.is_geographic():
            name, _ = srs.angular_units()
            steps.append(PipelineStep(UNIT_SCALE, f"{name} -> radian"))
        return steps

    @staticmethod
    def _trailing_steps(srs: SpatialReference):
        steps = []
        if srs.is_projected():
            steps.append(PipelineStep(FORWARD_PROJECTION, srs.projection_method() or ""))
            name, factor = srs.linear_units()
            if factor != 1.0:
                steps.append(PipelineStep(UNIT_SCALE, f"metre -> {name}"))
        elif srs.is_geographic():
            name, _ = srs.angular_units()
            steps.append(PipelineStep(UNIT_SCALE, f"radian -> {name}"))
        if _axis_order(srs)[:1] in (("NORTH",), ("SOUTH",)):
            steps.append(PipelineStep(AXIS_SWAP, "x/y -> northing/latitude first"))
        return steps

    # Properties ------------------------------------------------------------

    @property
    def source(self) -> SpatialReference:
        return self._source

    @property
    def target(self) -> SpatialReference:
        return self._target

    @property
    def steps(self) -> Tuple[PipelineStep, ...]:
        return self._steps

    @property
    def is_identity(self) -> bool:
        return self._identity

    @property
    def source_axis_order(self) -> Tuple[str, ...]:
        return self._source_axes

    @property
    def target_axis_order(self) -> Tuple[str, ...]:
        return self._target_axes

    @property
    def source_units(self) -> Tuple[str, float]:
        return self._source_units

    @property
    def target_units(self) -> Tuple[str, float]:
        return self._target_units

    @property
    def is_destroyed(self) -> bool:
        return self._destroyed

    # Execution -------------------------------------------------------------

    def _transformer(self) -> Transformer:
        transformer = getattr(self._local, "transformer", None)
        if transformer is None:
            try:
                transformer = Transformer.from_crs(
                    CRS.from_wkt(self._source_wkt),
                    CRS.from_wkt(self._target_wkt),
                    always_xy=True,
                )
            except (CRSError, ProjError) as exc:
                raise IncompatibleCRSError(f"Projection engine rejected the pair: {exc}") from exc
            self._local.transformer = transformer
            logger.debug("Created engine transformer for thread %s", threading.get_ident())
        return transformer

    def _check_alive(self) -> None:
        if self._destroyed:
            raise InvalidCRSError("Coordinate transform has been destroyed")

    def transform(self, x, y, z=None):
        """
        Transform coordinates.

        Parameters
        ----------
        x, y : array-like
            Easting/longitude and northing/latitude, any broadcastable shapes
        z : array-like, optional
            Heights

        Returns
        -------
        tuple of numpy.ndarray
            ``(x, y)`` or ``(x, y, z)`` as float64 arrays; identity transforms
            return copies of the input
        """
        self._check_alive()
        arrays = [np.asarray(x, dtype=np.float64), np.asarray(y, dtype=np.float64)]
        if z is not None:
            arrays.append(np.asarray(z, dtype=np.float64))
        arrays = [np.array(a, copy=True) for a in np.broadcast_arrays(*arrays)]
        if self._identity:
            return tuple(arrays)
        try:
            result = self._transformer().transform(*arrays)
        except ProjError as exc:
            raise IncompatibleCRSError(f"Transformation failed: {exc}") from exc
        return tuple(np.asarray(r, dtype=np.float64) for r in result)

    def transform_points(self, points) -> np.ndarray:
        """
        Transform an ``(N, 2)`` or ``(N, 3)`` array of points.

        Returns
        -------
        numpy.ndarray
            New array of the same shape
        """
        array = np.asarray(points, dtype=np.float64)
        if array.ndim != 2 or array.shape[1] not in (2, 3):
            raise ValueError(f"points must have shape (N, 2) or (N, 3), got {array.shape}")
        columns = [array[:, i] for i in range(array.shape[1])]
        result = self.transform(*columns)
        return np.column_stack(result)

    def inverse(self) -> "CoordinateTransform":
        """New transform from the target back to the source."""
        self._check_alive()
        return CoordinateTransform(self._target, self._source, self._allow_ballpark)

    # Lifecycle -------------------------------------------------------------

    def destroy(self) -> None:
        """Release the borrowed references; calling it again does nothing."""
        if self._destroyed:
            return
        self._destroyed = True
        self._source.release()
        self._target.release()
        self._local = threading.local()

    def __enter__(self) -> "CoordinateTransform":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.destroy()

    def __repr__(self) -> str:
        kinds = ", ".join(step.kind for step in self._steps) or "identity"
        return f"<CoordinateTransform {kinds}>"
