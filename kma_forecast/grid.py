"""
Projection of geographic coordinates onto the KMA 5 km forecast grid.

The village forecast service addresses its data by (nx, ny) cells of a
Lambert Conformal Conic grid. The cell is only meaningful when computed with
exactly the constants below; a different constant still yields a plausible
cell, just the wrong one.
"""

import logging
from typing import Tuple

import numpy as np

from .models import GridCell

logger = logging.getLogger(__name__)

EARTH_RADIUS_KM = 6371.00877
GRID_SPACING_KM = 5.0
STANDARD_PARALLEL_1 = 30.0
STANDARD_PARALLEL_2 = 60.0
REFERENCE_LONGITUDE = 126.0
REFERENCE_LATITUDE = 38.0
ORIGIN_X = 43
ORIGIN_Y = 136


def _projection_parameters() -> Tuple[float, float, float, float]:
    """
    Compute the cone constants of the projection.

    Returns:
        Tuple of (re, sn, sf, ro): earth radius in grid units, cone constant,
        scale factor and the radius of the reference latitude
    """
    re = EARTH_RADIUS_KM / GRID_SPACING_KM
    slat1 = np.deg2rad(STANDARD_PARALLEL_1)
    slat2 = np.deg2rad(STANDARD_PARALLEL_2)
    olat = np.deg2rad(REFERENCE_LATITUDE)

    sn = np.tan(np.pi * 0.25 + slat2 * 0.5) / np.tan(np.pi * 0.25 + slat1 * 0.5)
    sn = np.log(np.cos(slat1) / np.cos(slat2)) / np.log(sn)
    sf = np.tan(np.pi * 0.25 + slat1 * 0.5)
    sf = np.power(sf, sn) * np.cos(slat1) / sn
    ro = np.tan(np.pi * 0.25 + olat * 0.5)
    ro = re * sf / np.power(ro, sn)

    return re, sn, sf, ro


def project_points(latitudes, longitudes) -> Tuple[np.ndarray, np.ndarray]:
    """
    Project arrays of coordinates onto the grid.

    Args:
        latitudes: Latitudes in decimal degrees (scalar or array-like)
        longitudes: Longitudes in decimal degrees, same shape as latitudes

    Returns:
        Tuple of (nx, ny) integer arrays
    """
    lats = np.asarray(latitudes, dtype=float)
    lons = np.asarray(longitudes, dtype=float)
    re, sn, sf, ro = _projection_parameters()

    ra = np.tan(np.pi * 0.25 + np.deg2rad(lats) * 0.5)
    ra = re * sf / np.power(ra, sn)

    # Longitude offset from the reference meridian, kept within (-pi, pi]
    theta = np.deg2rad(lons) - np.deg2rad(REFERENCE_LONGITUDE)
    theta = np.where(theta > np.pi, theta - 2.0 * np.pi, theta)
    theta = np.where(theta <= -np.pi, theta + 2.0 * np.pi, theta)
    theta = theta * sn

    # Round half up, not numpy's round-half-even
    nx = np.floor(ra * np.sin(theta) + ORIGIN_X + 0.5).astype(int)
    ny = np.floor(ro - ra * np.cos(theta) + ORIGIN_Y + 0.5).astype(int)

    return nx, ny


def latlon_to_grid(latitude: float, longitude: float) -> GridCell:
    """
    Convert a latitude/longitude pair into its KMA grid cell.

    Args:
        latitude: Latitude in decimal degrees. -90 has no finite projection
            and is rejected by utils.validate_lat_lon.
        longitude: Longitude in decimal degrees

    Returns:
        GridCell holding the (nx, ny) indices
    """
    nx, ny = project_points(latitude, longitude)
    cell = GridCell(nx=int(nx), ny=int(ny))
    logger.debug(f"Projected ({latitude}, {longitude}) to grid cell ({cell.nx}, {cell.ny})")
    return cell
