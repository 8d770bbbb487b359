"""Unit tests for the dock CLI."""

from unittest.mock import patch

import pytest
from click.testing import CliRunner

from car_dock.cli import build_catalog, cli, format_dock
from car_dock.types import ComponentName, DockItem, DockItemType


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.mark.unit
class TestSimulate:
    """Test scenario replay."""

    def test_scenario(self, runner, scenario_file):
        """Test a scenario prints the dock after every event."""
        result = runner.invoke(cli, ["simulate", str(scenario_file), "--seed", "3"])

        assert result.exit_code == 0, result.output
        assert "initialize" in result.output
        assert "[0] S Maps" in result.output
        assert "[2] S Phone" in result.output
        assert "remove_package com.example.maps" in result.output

    def test_unfillable_dock(self, runner, tmp_path):
        """Test a dock that cannot be filled exits with an error."""
        path = tmp_path / "scenario.yaml"
        path.write_text(
            "dock:\n  capacity: 3\n"
            "apps:\n  - component: com.example.maps/.MapsActivity\n"
        )

        result = runner.invoke(cli, ["simulate", str(path)])

        assert result.exit_code == 1

    @pytest.mark.parametrize(
        "event, label",
        [
            ("com.example.radio/.RadioActivity", "RadioActivity"),
            ("{component: com.example.radio/.RadioActivity, name: FM}", "FM"),
        ],
    )
    def test_install_event(self, runner, tmp_path, event, label):
        """Test installs accept both the string and the mapping form."""
        path = tmp_path / "scenario.yaml"
        path.write_text(
            "dock:\n  capacity: 2\n"
            "apps:\n"
            "  - component: com.example.maps/.MapsActivity\n"
            "  - component: com.example.phone/.DialerActivity\n"
            "events:\n"
            f"  - install: {event}\n"
            "  - launch: com.example.radio/.RadioActivity\n"
        )

        result = runner.invoke(cli, ["simulate", str(path)])

        assert result.exit_code == 0, result.output
        assert f"D {label} (com.example.radio/com.example.radio.RadioActivity)" in result.output

    def test_log_level_from_config(self, runner, tmp_path):
        """Test the scenario's log level is used without --log-level."""
        path = tmp_path / "scenario.yaml"
        path.write_text(
            "dock:\n  capacity: 1\n  log_level: debug\n"
            "apps:\n  - component: com.example.maps/.MapsActivity\n"
        )

        with patch("car_dock.cli.setup_logging") as setup_logging:
            result = runner.invoke(cli, ["simulate", str(path)])

        assert result.exit_code == 0, result.output
        setup_logging.assert_called_once_with("DEBUG")

    def test_log_level_option_wins(self, runner, tmp_path):
        """Test --log-level overrides the scenario's log level."""
        path = tmp_path / "scenario.yaml"
        path.write_text(
            "dock:\n  capacity: 1\n  log_level: debug\n"
            "apps:\n  - component: com.example.maps/.MapsActivity\n"
        )

        with patch("car_dock.cli.setup_logging") as setup_logging:
            result = runner.invoke(cli, ["simulate", str(path), "--log-level", "ERROR"])

        assert result.exit_code == 0, result.output
        setup_logging.assert_called_once_with("ERROR")

    def test_missing_scenario(self, runner, tmp_path):
        """Test a missing scenario file is rejected."""
        result = runner.invoke(cli, ["simulate", str(tmp_path / "missing.yaml")])

        assert result.exit_code != 0


@pytest.mark.unit
class TestShowConfig:
    """Test configuration display."""

    def test_show_config(self, runner, tmp_path):
        """Test the effective configuration is printed as YAML."""
        path = tmp_path / "dock_config.yaml"
        path.write_text("dock:\n  capacity: 6\n")

        result = runner.invoke(cli, ["show-config", "--config", str(path)])

        assert result.exit_code == 0
        assert "capacity: 6" in result.output
        assert "max_tasks_to_fetch: 20" in result.output


@pytest.mark.unit
class TestHelpers:
    """Test CLI helpers."""

    def test_format_dock(self):
        """Test slot lines show kind, name and restriction."""
        items = [
            DockItem(
                type=DockItemType.STATIC,
                component=ComponentName("com.example.maps", "com.example.maps.Main"),
                name="Maps",
                is_restricted=False,
            ),
            DockItem(
                type=DockItemType.DYNAMIC,
                component=ComponentName("com.example.phone", "com.example.phone.Main"),
                name="Phone",
                is_restricted=True,
            ),
        ]

        lines = format_dock(items).splitlines()

        assert lines[0] == "  [0] S Maps (com.example.maps/com.example.maps.Main)"
        assert lines[1].endswith("[restricted]")

    def test_build_catalog(self):
        """Test apps and capabilities are read from the scenario."""
        catalog, capabilities = build_catalog(
            [
                {"component": "com.example.maps/.Maps", "name": "Maps", "distraction_optimized": True},
                {"component": "com.example.radio/.Radio"},
            ]
        )
        maps = ComponentName("com.example.maps", "com.example.maps.Maps")
        radio = ComponentName("com.example.radio", "com.example.radio.Radio")

        assert catalog.resolve(maps).name == "Maps"
        assert catalog.resolve(radio).name == "Radio"
        assert capabilities.is_distraction_optimized(maps)
        assert not capabilities.is_distraction_optimized(radio)
