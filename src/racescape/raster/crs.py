"""CRS normalization and comparison helpers."""

from __future__ import annotations

from pyproj import CRS


def normalize_crs(value: str | CRS) -> CRS:
    """Normalize CRS input into a pyproj CRS object."""
    return CRS.from_user_input(value)


def crs_to_string(value: str | CRS | None) -> str | None:
    """Return a stable string form of a CRS, preferring an EPSG code."""
    if value is None:
        return None
    crs = normalize_crs(value)
    epsg = crs.to_epsg()
    if epsg is not None:
        return f"EPSG:{epsg}"
    return crs.to_wkt()


def crs_equal(left: str | CRS | None, right: str | CRS | None) -> bool:
    """Compare two CRS definitions; two missing CRSs are equal."""
    if left is None or right is None:
        return left is None and right is None
    return normalize_crs(left) == normalize_crs(right)
