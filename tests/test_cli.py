"""
Unit tests for CLI module.
"""

import tempfile
from pathlib import Path
from unittest.mock import MagicMock, patch

import pandas as pd
import pytest

from kma_forecast.cli import (
    main,
    parse_arguments,
    process_point,
    setup_logging,
    validate_arguments
)
from kma_forecast.fetcher import SERVICE_ENDPOINT
from kma_forecast.models import FetchResult, FetchStatus, ForecastCategory, RawRecord, Vintage


def complete_slot(date="20250124", time="1500"):
    """Records for one complete forecast slot."""
    return [
        RawRecord(ForecastCategory.TEMPERATURE, date, time, "4"),
        RawRecord(ForecastCategory.PRECIP_PROBABILITY, date, time, "30"),
        RawRecord(ForecastCategory.PRECIP_TYPE, date, time, "0"),
        RawRecord(ForecastCategory.SKY_CONDITION, date, time, "3"),
    ]


def make_args(**overrides):
    """Build an arguments namespace mock."""
    args = MagicMock()
    args.points_file = None
    args.lat = 37.5665
    args.lon = 126.9780
    args.timeout = 10.0
    for key, value in overrides.items():
        setattr(args, key, value)
    return args


class TestParseArguments:
    """Test command line argument parsing."""

    def test_parse_single_point(self, monkeypatch):
        """Test parsing a single coordinate with defaults."""
        monkeypatch.setenv("KMA_SERVICE_KEY", "ENVKEY")

        args = parse_arguments(['--lat', '37.5665', '--lon', '126.9780'])

        assert args.points_file is None
        assert args.lat == 37.5665
        assert args.lon == 126.9780
        assert args.service_key == "ENVKEY"
        assert args.endpoint == SERVICE_ENDPOINT
        assert args.timeout == 10.0
        assert args.output is None
        assert args.verbose is False
        assert args.dry_run is False

    def test_parse_all_arguments(self):
        """Test parsing all available arguments."""
        args = parse_arguments([
            'points.txt',
            '--service-key', 'ABC%2B123',
            '--endpoint', 'http://localhost/fcst',
            '--timeout', '2.5',
            '--output', 'out.csv',
            '--verbose',
            '--dry-run'
        ])

        assert args.points_file == 'points.txt'
        assert args.service_key == 'ABC%2B123'
        assert args.endpoint == 'http://localhost/fcst'
        assert args.timeout == 2.5
        assert args.output == 'out.csv'
        assert args.verbose is True
        assert args.dry_run is True


class TestValidateArguments:
    """Test argument validation."""

    def test_validate_single_point(self):
        """Test validation of a valid coordinate."""
        validate_arguments(make_args())

    def test_validate_points_file(self):
        """Test validation of an existing points file."""
        with tempfile.NamedTemporaryFile(mode='w', delete=False) as f:
            f.write("37.5665,126.9780\n")
            temp_file = f.name

        try:
            validate_arguments(make_args(points_file=temp_file, lat=None, lon=None))
        finally:
            Path(temp_file).unlink()

    def test_validate_nonexistent_points_file(self):
        """Test validation with nonexistent points file."""
        with pytest.raises(ValueError, match="Points file not found"):
            validate_arguments(make_args(points_file="nonexistent.txt", lat=None, lon=None))

    def test_validate_no_location(self):
        """Test validation without any location."""
        with pytest.raises(ValueError, match="is required"):
            validate_arguments(make_args(lat=None, lon=None))

    def test_validate_both_locations(self):
        """Test validation with a points file and a coordinate."""
        with pytest.raises(ValueError, match="not both"):
            validate_arguments(make_args(points_file="points.txt"))

    def test_validate_partial_coordinate(self):
        """Test validation with only a latitude."""
        with pytest.raises(ValueError, match="must be given together"):
            validate_arguments(make_args(lon=None))

    def test_validate_invalid_coordinate(self):
        """Test validation with an out of range latitude."""
        with pytest.raises(ValueError, match="Invalid coordinates"):
            validate_arguments(make_args(lat=95.0))

    def test_validate_south_pole(self):
        """Test a latitude of -90 is rejected before projection."""
        with pytest.raises(ValueError, match="Invalid coordinates"):
            validate_arguments(make_args(lat=-90.0))

    def test_validate_invalid_timeout(self):
        """Test validation with a non-positive timeout."""
        with pytest.raises(ValueError, match="timeout must be positive"):
            validate_arguments(make_args(timeout=0))


class TestSetupLogging:
    """Test logging setup functionality."""

    def test_setup_logging_default(self):
        """Test setting up logging with default settings."""
        setup_logging(verbose=False)

    def test_setup_logging_verbose(self):
        """Test setting up logging with verbose mode."""
        setup_logging(verbose=True)


class TestProcessPoint:
    """Test single point processing."""

    @patch('kma_forecast.cli.latest_vintage')
    @patch('kma_forecast.cli.fetch_forecast')
    def test_process_point_success(self, mock_fetch, mock_vintage):
        """Test a point is resolved into tagged rows."""
        mock_vintage.return_value = Vintage("20250124", "1400")
        mock_fetch.return_value = FetchResult(FetchStatus.OK, complete_slot())
        session = MagicMock()

        df = process_point(37.5665, 126.9780, "KEY", session, 5.0, SERVICE_ENDPOINT)

        assert len(df) == 1
        assert list(df.columns[:4]) == ['latitude', 'longitude', 'nx', 'ny']
        assert df['nx'].iloc[0] == 60
        assert df['ny'].iloc[0] == 127
        assert df['temperature'].iloc[0] == 4.0

        args, kwargs = mock_fetch.call_args
        assert args[1] == Vintage("20250124", "1400")
        assert args[2] == "KEY"
        assert kwargs == {"session": session, "timeout": 5.0, "endpoint": SERVICE_ENDPOINT}

    @patch('kma_forecast.cli.fetch_forecast')
    def test_process_point_dry_run(self, mock_fetch):
        """Test a dry run makes no request."""
        df = process_point(37.5665, 126.9780, "KEY", MagicMock(), 5.0, SERVICE_ENDPOINT, dry_run=True)

        assert df.empty
        mock_fetch.assert_not_called()


class TestMain:
    """Test the CLI entry point."""

    @patch('kma_forecast.cli.fetch_forecast')
    def test_main_writes_csv(self, mock_fetch):
        """Test forecasts for a points file are written to CSV."""
        mock_fetch.return_value = FetchResult(
            FetchStatus.OK, complete_slot("20250124", "1600") + complete_slot("20250124", "1500")
        )

        with tempfile.TemporaryDirectory() as tmp_dir:
            points_file = Path(tmp_dir) / "points.txt"
            points_file.write_text("37.5665,126.9780\n35.1796,129.0756\n")
            output = Path(tmp_dir) / "out.csv"

            main([str(points_file), '--service-key', 'KEY', '--output', str(output)])

            df = pd.read_csv(output, dtype={'fcst_date': str, 'fcst_time': str})

        assert len(df) == 4
        assert mock_fetch.call_count == 2
        assert df['fcst_time'].tolist() == ['1500', '1600', '1500', '1600']

    @patch('kma_forecast.cli.fetch_forecast')
    def test_main_continues_after_point_failure(self, mock_fetch, capsys):
        """Test one failing point does not stop the others."""
        mock_fetch.side_effect = [RuntimeError("boom"), FetchResult(FetchStatus.OK, complete_slot())]

        with tempfile.TemporaryDirectory() as tmp_dir:
            points_file = Path(tmp_dir) / "points.txt"
            points_file.write_text("37.5665,126.9780\n35.1796,129.0756\n")

            main([str(points_file), '--service-key', 'KEY'])

        assert mock_fetch.call_count == 2
        assert "35.1796" in capsys.readouterr().out

    def test_main_invalid_arguments_exit(self):
        """Test invalid arguments exit with status 1."""
        with pytest.raises(SystemExit) as exc_info:
            main(['--lat', '37.5'])

        assert exc_info.value.code == 1
