"""CLI for the dock engine.

Provides commands to inspect configuration and to replay a scenario of dock
events against an in-memory app catalog.

Scenario files are YAML::

    dock:
      capacity: 4
      default_apps: ["com.example.maps/.MapsActivity"]
    apps:
      - component: com.example.maps/.MapsActivity
        name: Maps
        distraction_optimized: true
    tasks: ["com.example.radio/.RadioActivity"]
    events:
      - launch: com.example.phone/.DialerActivity
      - pin: {component: com.example.phone/.DialerActivity, index: 2}
      - remove_package: com.example.maps
"""

import asyncio
import logging
import random
import sys
from pathlib import Path
from typing import Any, Dict, List, Tuple

import click
import yaml

from car_dock.config import ConfigLoader, DockConfig
from car_dock.controller import DockController
from car_dock.engine import DockEngine, InsufficientCandidatesError
from car_dock.providers import (
    InMemoryAppCatalog,
    InMemoryTaskSnapshot,
    StaticCapabilityProvider,
)
from car_dock.resolver import CandidateResolver
from car_dock.types import ComponentName, DockItem, RunningTask

logger = logging.getLogger(__name__)


def setup_logging(level: str) -> None:
    """Configure root logging."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def format_dock(items: List[DockItem]) -> str:
    """Render a dock list as text, one slot per line."""
    lines = []
    for index, item in enumerate(items):
        kind = "S" if item.is_static else "D"
        flags = " [restricted]" if item.is_restricted else ""
        lines.append(f"  [{index}] {kind} {item.name} ({item.component}){flags}")
    return "\n".join(lines)


def _component(value: Any) -> ComponentName:
    raw = value.get("component") if isinstance(value, dict) else value
    component = ComponentName.unflatten(raw)
    if component is None:
        raise click.BadParameter(f"Invalid component name: {raw!r}")
    return component


def _app_name(value: Any, component: ComponentName) -> str:
    if isinstance(value, dict) and "name" in value:
        return value["name"]
    return component.class_name.rsplit(".", 1)[-1]


def build_catalog(
    apps: List[Dict[str, Any]]
) -> Tuple[InMemoryAppCatalog, StaticCapabilityProvider]:
    """Build the catalog and capability provider for a scenario."""
    catalog = InMemoryAppCatalog()
    optimized = []
    for app in apps:
        component = _component(app)
        catalog.install(
            component,
            name=_app_name(app, component),
            icon_color=app.get("icon_color"),
            launchable=app.get("launchable", True),
            media=app.get("media", False),
        )
        if app.get("distraction_optimized", False):
            optimized.append(component)
    return catalog, StaticCapabilityProvider(optimized)


async def run_scenario(scenario: Dict[str, Any], seed: int = 0) -> int:
    """Replay a scenario, echoing the dock after every event.

    Returns:
        Process exit code
    """
    config = DockConfig(**(scenario.get("dock") or {}))
    catalog, capabilities = build_catalog(scenario.get("apps", []))
    tasks = InMemoryTaskSnapshot(
        RunningTask(task_id=i, user_id=config.user_id, base_activity=_component(t))
        for i, t in enumerate(scenario.get("tasks", []))
    )

    engine = DockEngine(
        config,
        metadata_provider=catalog,
        task_provider=tasks,
        launcher_provider=catalog,
        media_provider=catalog,
        capability_provider=capabilities,
        resolver=CandidateResolver(random.Random(seed)),
        no_space_notifier=lambda message: click.echo(f"! {message}"),
    )
    controller = DockController(engine, catalog)
    await engine.observe(lambda items: click.echo(format_dock(items)))

    try:
        click.echo("initialize")
        await engine.initialize()

        for event in scenario.get("events", []):
            (name, value), = event.items()
            click.echo(f"{name} {value}")

            if name == "launch":
                await controller.app_launched(_component(value))
            elif name == "pin":
                index = value.get("index") if isinstance(value, dict) else None
                await controller.app_pinned(_component(value), index)
            elif name == "unpin":
                await controller.app_unpinned(_component(value))
            elif name == "install":
                component = _component(value)
                catalog.install(component, name=_app_name(value, component))
                await controller.package_added(component.package_name)
            elif name == "remove_package":
                catalog.uninstall(value)
                await controller.package_removed(value)
            else:
                raise click.BadParameter(f"Unknown event: {name}")

    except InsufficientCandidatesError as e:
        logger.error(f"Dock cannot be filled: {e}")
        return 1

    finally:
        await engine.destroy()

    return 0


@click.group()
def cli():
    """Car dock CLI."""
    pass


@cli.command("show-config")
@click.option("--config", "config_path", type=click.Path(), help="Config file path")
def show_config(config_path):
    """Print the effective dock configuration."""
    loader = ConfigLoader(config_path)
    config = loader.dock_config()
    click.echo(yaml.safe_dump(config.model_dump(), default_flow_style=False, sort_keys=False))


@cli.command()
@click.argument("scenario", type=click.Path(exists=True, dir_okay=False))
@click.option("--seed", type=int, default=0, help="Seed for fallback shuffling")
@click.option("--log-level", default=None, help="Logging level (defaults to the scenario config)")
def simulate(scenario, seed, log_level):
    """Replay SCENARIO and print the dock after every event."""
    with open(Path(scenario), "r") as f:
        data = yaml.safe_load(f) or {}

    if log_level is None:
        log_level = DockConfig(**(data.get("dock") or {})).log_level
    setup_logging(log_level)

    exit_code = asyncio.run(run_scenario(data, seed=seed))
    sys.exit(exit_code)


if __name__ == "__main__":
    cli()
