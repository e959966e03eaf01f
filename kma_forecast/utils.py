"""
Shared utilities for reading and validating forecast locations.
"""

import logging
from typing import List, Tuple

logger = logging.getLogger(__name__)


def validate_lat_lon(lat: float, lon: float) -> bool:
    """
    Validate latitude and longitude coordinates.

    The south pole is excluded: the grid projection has no finite value there.

    Args:
        lat: Latitude value
        lon: Longitude value

    Returns:
        True if coordinates are valid, False otherwise
    """
    return -90 < lat <= 90 and -180 <= lon <= 180


def parse_point(text: str) -> Tuple[float, float]:
    """
    Parse a 'lat,lon' string.

    Args:
        text: Coordinate string, e.g. "37.5665,126.9780"

    Returns:
        (lat, lon) tuple

    Raises:
        ValueError: If the string is not a valid coordinate pair
    """
    parts = text.split(',')
    if len(parts) != 2:
        raise ValueError("Expected 'lat,lon' format")

    lat = float(parts[0].strip())
    lon = float(parts[1].strip())

    if not validate_lat_lon(lat, lon):
        raise ValueError(f"Invalid coordinates {lat}, {lon}")

    return lat, lon


def read_points_file(file_path: str) -> List[Tuple[float, float]]:
    """
    Read lat/lon points from a text file.

    Blank lines and anything after '#' are ignored.

    Args:
        file_path: Path to the points file

    Returns:
        List of (lat, lon) tuples

    Raises:
        FileNotFoundError: If points file doesn't exist
        ValueError: If file format is invalid
    """
    points = []

    try:
        with open(file_path, 'r') as f:
            for line_num, line in enumerate(f, 1):
                line = line.split('#', 1)[0].strip()
                if not line:
                    continue

                try:
                    points.append(parse_point(line))
                except ValueError as e:
                    raise ValueError(f"Line {line_num}: {str(e)}") from e

    except FileNotFoundError:
        raise FileNotFoundError(f"Points file not found: {file_path}")

    if not points:
        raise ValueError("No valid points found in file")

    logger.info(f"Loaded {len(points)} points from {file_path}")
    return points
