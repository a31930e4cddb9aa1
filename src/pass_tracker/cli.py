"""
Command-line interface for the satellite pass tracker.

This module provides a CLI for predicting passes, sampling ground tracks and
running the tick-driven tracker from the command line.
"""

from datetime import timedelta
from typing import Optional
import json
import logging
import time

import click
from tabulate import tabulate

from .config import load_settings
from .observer import Observer
from .orbit import SatelliteOrbit
from .tracker import SatelliteTracker
from .utils import (
    setup_logging, parse_datetime, create_sample_tle_file,
    get_current_utc, format_duration
)

logger = logging.getLogger(__name__)


def _build_tracker(tle: str, satellite: str, config: Optional[str]) -> SatelliteTracker:
    settings, engine_config = load_settings(config)
    sat = SatelliteOrbit.from_tle_file(tle, satellite)
    return SatelliteTracker(sat, settings=settings, engine_config=engine_config)


def _observer_options(func):
    """Options shared by every command that needs a satellite and an observer."""
    options = [
        click.option('--tle', required=True, type=click.Path(exists=True),
                     help='Path to TLE file'),
        click.option('--satellite', required=True,
                     help='Satellite name (must match name in TLE file)'),
        click.option('--lat', required=True, type=float,
                     help='Observer latitude in degrees'),
        click.option('--lon', required=True, type=float,
                     help='Observer longitude in degrees'),
        click.option('--alt', default=0.0, type=float,
                     help='Observer altitude in meters (default: 0)'),
        click.option('--time', 'at_time', type=str,
                     help='Reference time (YYYY-MM-DD HH:MM:SS UTC, default: now)'),
        click.option('--config', type=click.Path(exists=True),
                     help='Tracker YAML configuration file'),
    ]
    for option in reversed(options):
        func = option(func)
    return func


@click.group()
@click.option('--log-level', default='INFO',
              type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR']),
              help='Set logging level')
@click.option('--log-file', type=click.Path(), help='Log file path')
def main(log_level: str, log_file: Optional[str]) -> None:
    """Satellite Pass Tracker - Predict passes and ground tracks for a ground station."""
    setup_logging(log_level, log_file)
    logger.info("Starting Satellite Pass Tracker CLI")


@main.command(name='next-pass')
@_observer_options
@click.option('--json', 'as_json', is_flag=True, help='Print the pass as JSON')
def next_pass(tle, satellite, lat, lon, alt, at_time, config, as_json) -> None:
    """Find the next pass of a satellite over the observer."""
    try:
        tracker = _build_tracker(tle, satellite, config)
        observer = Observer(lat, lon, alt)
        now = parse_datetime(at_time) if at_time else get_current_utc()

        pass_geometry = tracker.get_next_pass(observer, now)

        if as_json:
            click.echo(json.dumps(pass_geometry.to_dict(), indent=2))
        elif pass_geometry.is_empty:
            click.echo(f"No passes found for {tracker.name} over {observer}")
        else:
            click.echo(f"\nNext pass of {tracker.name} over {observer}:")
            click.echo(f"AOS:      {pass_geometry.aos_time.strftime('%Y-%m-%d %H:%M:%S')} UTC")
            click.echo(f"LOS:      {pass_geometry.los_time.strftime('%Y-%m-%d %H:%M:%S')} UTC")
            click.echo(f"Duration: {format_duration(pass_geometry.duration_s)}")
            click.echo(f"Max Elev: {pass_geometry.max_elevation:.1f}°")
            click.echo(f"Orbit:    {pass_geometry.orbit_number}")

    except Exception as e:
        logger.error(f"Next pass calculation failed: {e}")
        click.echo(f"Error: {e}", err=True)


@main.command()
@_observer_options
@click.option('--json', 'as_json', is_flag=True, help='Print the passes as JSON')
def passes(tle, satellite, lat, lon, alt, at_time, config, as_json) -> None:
    """List the passes of the UTC day containing the reference time."""
    try:
        tracker = _build_tracker(tle, satellite, config)
        observer = Observer(lat, lon, alt)
        when = parse_datetime(at_time) if at_time else get_current_utc()

        todays = tracker.calculate_todays_passes(observer, when)

        if as_json:
            click.echo(json.dumps([p.to_dict() for p in todays], indent=2))
            return

        if not todays:
            click.echo(f"No passes of {tracker.name} over {observer} on {when.date()}")
            return

        click.echo(f"\nPasses of {tracker.name} over {observer} on {when.date()}:")
        table = [
            [
                p.aos_time.strftime('%Y-%m-%d %H:%M:%S'),
                p.los_time.strftime('%Y-%m-%d %H:%M:%S'),
                format_duration(p.duration_s),
                f"{p.max_elevation:.1f}°",
                p.orbit_number,
            ]
            for p in todays
        ]
        click.echo(tabulate(table, headers=["AOS", "LOS", "Duration", "Max Elev", "Orbit"], tablefmt="grid"))

    except Exception as e:
        logger.error(f"Pass listing failed: {e}")
        click.echo(f"Error: {e}", err=True)


@main.command()
@_observer_options
@click.option('--json', 'as_json', is_flag=True, help='Print the ground track as JSON')
def orbit(tle, satellite, lat, lon, alt, at_time, config, as_json) -> None:
    """Sample the ground track of the current revolution."""
    try:
        tracker = _build_tracker(tle, satellite, config)
        observer = Observer(lat, lon, alt)
        when = parse_datetime(at_time) if at_time else get_current_utc()

        points = tracker.calculate_orbit(observer, when)

        if as_json:
            click.echo(json.dumps([p.to_dict() for p in points], indent=2))
            return

        click.echo(f"\nGround track of {tracker.name}: {len(points)} points")
        table = [
            [p.date.strftime('%Y-%m-%d %H:%M:%S'), f"{p.latitude:.3f}", f"{p.longitude:.3f}",
             f"{p.elevation:.1f}", p.orbit_number]
            for p in points
        ]
        click.echo(tabulate(table, headers=["Time", "Lat", "Lon", "Elev", "Orbit"]))

    except Exception as e:
        logger.error(f"Orbit calculation failed: {e}")
        click.echo(f"Error: {e}", err=True)


@main.command(name='next-event')
@_observer_options
def next_event(tle, satellite, lat, lon, alt, at_time, config) -> None:
    """Show the next AOS or LOS of the satellite."""
    try:
        tracker = _build_tracker(tle, satellite, config)
        observer = Observer(lat, lon, alt)
        when = parse_datetime(at_time) if at_time else get_current_utc()

        tracker.tick(observer, when)
        event = tracker.get_next_event()
        click.echo(f"{tracker.name}: {event.text} ({event.description})")

    except Exception as e:
        logger.error(f"Next event calculation failed: {e}")
        click.echo(f"Error: {e}", err=True)


@main.command()
@_observer_options
@click.option('--ticks', default=10, type=int,
              help='Number of ticks to run (default: 10)')
@click.option('--interval', default=1.0, type=float,
              help='Seconds between ticks (default: 1)')
@click.option('--live', is_flag=True,
              help='Follow the wall clock and sleep between ticks')
@click.option('--select/--no-select', default=True,
              help='Keep the next pass up to date while tracking')
def track(tle, satellite, lat, lon, alt, at_time, config, ticks, interval, live, select) -> None:
    """Run the tracker for a number of ticks and print the state."""
    try:
        tracker = _build_tracker(tle, satellite, config)
        observer = Observer(lat, lon, alt)
        start = parse_datetime(at_time) if at_time else get_current_utc()
        if select:
            tracker.select()

        for i in range(ticks):
            when = get_current_utc() if live else start + timedelta(seconds=i * interval)
            state = tracker.tick(observer, when)
            click.echo(
                f"{state.when.strftime('%Y-%m-%d %H:%M:%S')}  "
                f"el {state.elevation:6.1f}  az {state.azimuth:6.1f}  "
                f"range {state.range_km:8.1f} km  {tracker.get_next_event_text()}"
            )
            if live and i < ticks - 1:
                time.sleep(interval)

        next_pass_geometry = tracker.get_next_pass()
        if next_pass_geometry is not None:
            click.echo(f"Next pass: {next_pass_geometry}")

    except Exception as e:
        logger.error(f"Tracking failed: {e}")
        click.echo(f"Error: {e}", err=True)


@main.command(name='create-sample-tle')
@click.option('--output', default='sample.tle', type=click.Path(),
              help='Output file path (default: sample.tle)')
def create_sample_tle(output: str) -> None:
    """Create a sample TLE file with common satellites."""
    try:
        create_sample_tle_file(output)
        click.echo(f"Sample TLE file created: {output}")
    except Exception as e:
        logger.error(f"Failed to create sample TLE file: {e}")
        click.echo(f"Error: {e}", err=True)


if __name__ == '__main__':
    main()
