"""
CLI module for the KMA village forecast tool.
"""

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional, Tuple

import pandas as pd
import requests
from tqdm import tqdm

from .fetcher import SERVICE_ENDPOINT, fetch_forecast
from .grid import latlon_to_grid
from .transformer import assemble_rows, rows_to_dataframe
from .utils import read_points_file, validate_lat_lon
from .vintage import latest_vintage

logger = logging.getLogger(__name__)

SERVICE_KEY_ENV = "KMA_SERVICE_KEY"


def setup_logging(verbose: bool = False) -> None:
    """
    Setup logging configuration.

    Args:
        verbose: Enable verbose logging
    """
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stdout)
        ]
    )


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Parse command line arguments.

    Args:
        argv: Argument list, defaults to sys.argv[1:]

    Returns:
        Parsed arguments namespace
    """
    parser = argparse.ArgumentParser(
        description="KMA Forecast - Resolve short-term village forecasts for coordinates",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Forecast for a single coordinate, key taken from KMA_SERVICE_KEY
  kma-forecast --lat 37.5665 --lon 126.9780

  # Forecast for every point in a file, written to CSV
  kma-forecast points.txt --output forecast.csv

  # Show grid cells and the selected publication without calling the service
  kma-forecast points.txt --dry-run
        """
    )

    parser.add_argument(
        'points_file',
        nargs='?',
        help='Path to file containing lat,lon coordinates (one per line)'
    )

    parser.add_argument(
        '--lat',
        type=float,
        help='Latitude of a single location in decimal degrees'
    )

    parser.add_argument(
        '--lon',
        type=float,
        help='Longitude of a single location in decimal degrees'
    )

    parser.add_argument(
        '--service-key',
        default=os.environ.get(SERVICE_KEY_ENV),
        help=f'KMA open API service key, encoded or decoded (default: ${SERVICE_KEY_ENV})'
    )

    parser.add_argument(
        '--endpoint',
        default=SERVICE_ENDPOINT,
        help='Village forecast endpoint URL'
    )

    parser.add_argument(
        '--timeout',
        type=float,
        default=10.0,
        help='Request timeout in seconds (default: 10)'
    )

    parser.add_argument(
        '--output',
        help='Write forecast rows to this CSV file instead of printing them'
    )

    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Enable verbose logging'
    )

    parser.add_argument(
        '--dry-run',
        action='store_true',
        help='Resolve grid cells and publication time but do not call the service'
    )

    return parser.parse_args(argv)


def validate_arguments(args: argparse.Namespace) -> None:
    """
    Validate command line arguments.

    Args:
        args: Parsed arguments

    Raises:
        ValueError: If arguments are invalid
    """
    has_point = args.lat is not None or args.lon is not None

    if args.points_file and has_point:
        raise ValueError("Use either a points file or --lat/--lon, not both")

    if not args.points_file and not has_point:
        raise ValueError("A points file or --lat/--lon is required")

    if has_point:
        if args.lat is None or args.lon is None:
            raise ValueError("--lat and --lon must be given together")
        if not validate_lat_lon(args.lat, args.lon):
            raise ValueError(f"Invalid coordinates {args.lat}, {args.lon}")

    if args.points_file and not Path(args.points_file).exists():
        raise ValueError(f"Points file not found: {args.points_file}")

    if args.timeout <= 0:
        raise ValueError("timeout must be positive")


def process_point(
    lat: float,
    lon: float,
    service_key: Optional[str],
    session: requests.Session,
    timeout: float,
    endpoint: str,
    dry_run: bool = False
) -> pd.DataFrame:
    """
    Resolve the forecast for a single point.

    Args:
        lat: Latitude
        lon: Longitude
        service_key: KMA service key
        session: Session used for the request
        timeout: Request timeout in seconds
        endpoint: Village forecast endpoint URL
        dry_run: Skip the request

    Returns:
        DataFrame of forecast rows tagged with the point and its grid cell
    """
    cell = latlon_to_grid(lat, lon)
    vintage = latest_vintage()
    logger.info(
        f"Point ({lat}, {lon}) -> grid ({cell.nx}, {cell.ny}), "
        f"publication {vintage.issue_date} {vintage.issue_time}"
    )

    if dry_run:
        rows = []
    else:
        result = fetch_forecast(cell, vintage, service_key, session=session, timeout=timeout, endpoint=endpoint)
        rows = assemble_rows(result.records)

    df = rows_to_dataframe(rows)
    df.insert(0, 'latitude', lat)
    df.insert(1, 'longitude', lon)
    df.insert(2, 'nx', cell.nx)
    df.insert(3, 'ny', cell.ny)
    return df


def collect_points(args: argparse.Namespace) -> List[Tuple[float, float]]:
    """Return the points selected on the command line."""
    if args.points_file:
        return read_points_file(args.points_file)
    return [(args.lat, args.lon)]


def main(argv: Optional[List[str]] = None):
    """Main CLI entry point."""
    try:
        args = parse_arguments(argv)

        setup_logging(args.verbose)

        validate_arguments(args)

        logger.info("Starting forecast resolution")

        if not args.service_key and not args.dry_run:
            logger.warning(f"No service key given and ${SERVICE_KEY_ENV} is unset; no forecast will be fetched")

        points = collect_points(args)
        logger.info(f"Processing {len(points)} points")

        session = requests.Session()

        try:
            all_dataframes = []

            for lat, lon in tqdm(points, desc="Resolving forecasts", disable=len(points) < 2):
                try:
                    df = process_point(
                        lat,
                        lon,
                        args.service_key,
                        session,
                        args.timeout,
                        args.endpoint,
                        args.dry_run
                    )
                    if not df.empty:
                        all_dataframes.append(df)
                    elif not args.dry_run:
                        logger.warning(f"No forecast rows for ({lat}, {lon})")

                except Exception as e:
                    logger.error(f"Failed to resolve forecast for ({lat}, {lon}): {str(e)}")
                    continue

            if all_dataframes:
                combined_df = pd.concat(all_dataframes, ignore_index=True)

                if args.output:
                    combined_df.to_csv(args.output, index=False)
                    logger.info(f"Wrote {len(combined_df)} rows to {args.output}")
                else:
                    print(combined_df.to_string(index=False))
            else:
                logger.warning("No forecast data to output")

        finally:
            session.close()

        logger.info("Forecast resolution completed")

    except KeyboardInterrupt:
        logger.info("Process interrupted by user")
        sys.exit(1)
    except Exception as e:
        logger.error(f"Process failed: {str(e)}")
        sys.exit(1)


if __name__ == "__main__":
    main()
