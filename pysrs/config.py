"""
Library-wide defaults for PySRS.

Defaults can be overridden through environment variables at import time or
temporarily through the ``override`` context manager:

- ``PYSRS_STRICT``: treat validation/fixup findings and unknown units as errors
- ``PYSRS_WKT_INDENT``: indentation width of pretty WKT
- ``PYSRS_FETCH_TIMEOUT``: timeout in seconds for ``import_from_url``
- ``PYSRS_ALLOW_BALLPARK``: allow datum changes without shift parameters
- ``PYSRS_USGS_PACKED_DMS``: read and write USGS angles as packed DMS
"""

import dataclasses
import os
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator

_TRUE_VALUES = ("1", "true", "yes", "on")


def _env_flag(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in _TRUE_VALUES


@dataclass
class Settings:
    """
    Mutable library defaults.

    Attributes
    ----------
    strict : bool
        Raise instead of warning on validation findings and unknown units
    wkt_indent : int
        Number of spaces per level in pretty WKT output
    fetch_timeout : float
        Seconds allowed for the default URL fetcher
    allow_ballpark : bool
        Build transforms across different datums without shift parameters
    usgs_packed_dms : bool
        Interpret USGS GCTP angles as packed DDDMMMSSS.SS values
    """

    strict: bool = False
    wkt_indent: int = 4
    fetch_timeout: float = 30.0
    allow_ballpark: bool = False
    usgs_packed_dms: bool = True

    @classmethod
    def from_environment(cls) -> "Settings":
        """Build settings from ``PYSRS_*`` environment variables."""
        return cls(
            strict=_env_flag("PYSRS_STRICT", False),
            wkt_indent=int(os.environ.get("PYSRS_WKT_INDENT", "4")),
            fetch_timeout=float(os.environ.get("PYSRS_FETCH_TIMEOUT", "30")),
            allow_ballpark=_env_flag("PYSRS_ALLOW_BALLPARK", False),
            usgs_packed_dms=_env_flag("PYSRS_USGS_PACKED_DMS", True),
        )


settings = Settings.from_environment()


def get_settings() -> Settings:
    """Return the active settings instance."""
    return settings


@contextmanager
def override(**changes) -> Iterator[Settings]:
    """
    Temporarily change library settings.

    Examples
    --------
    >>> with override(strict=True):
    ...     srs.fixup()
    """
    saved = dataclasses.replace(settings)
    for key, value in changes.items():
        if not hasattr(settings, key):
            raise AttributeError(f"Unknown setting '{key}'")
        setattr(settings, key, value)
    try:
        yield settings
    finally:
        for field in dataclasses.fields(Settings):
            setattr(settings, field.name, getattr(saved, field.name))
