#!/usr/bin/env python3
"""
feedcal agenda - print the meetings of a day from an ICS subscription.

This is the main entry point for the command line tool.
"""

import sys
import asyncio
import argparse
import logging
from datetime import date, datetime
from pathlib import Path

from feedcal.config import Config
from feedcal.subscription_service import ICSSubscriptionService
from feedcal.agenda import format_agenda_line
from feedcal.timezone_utils import set_timezone, get_local_timezone


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="feedcal - show the agenda of an ICS calendar subscription"
    )
    parser.add_argument(
        "-c", "--config",
        type=Path,
        help="Path to configuration file (default: auto-detect)"
    )
    parser.add_argument(
        "-d", "--date",
        type=date.fromisoformat,
        help="Day to show as YYYY-MM-DD (default: today)"
    )
    parser.add_argument(
        "-w", "--watch",
        action="store_true",
        help="Keep running and reprint the agenda whenever the feed changes"
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug output"
    )
    return parser.parse_args(argv)


def print_agenda(service: ICSSubscriptionService, day: date) -> None:
    events = service.get_events_for_date(day)
    print(f"Agenda for {day.isoformat()}:")
    if not events:
        print("  No events")
    for event in events:
        print(f"  {format_agenda_line(event, get_local_timezone())}")


async def run(config: Config, day: date, watch: bool) -> int:
    def notify(message: str) -> None:
        print(f"Notice: {message}", file=sys.stderr)

    async with ICSSubscriptionService(config, notify=notify) as service:
        print_agenda(service, day)
        if watch:
            service.subscribe(lambda: print_agenda(service, day))
            # Runs until interrupted; the scheduler keeps the cache fresh
            await asyncio.Event().wait()
    return 0


def main(argv=None):
    """Main entry point."""
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="[%(asctime)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )

    # Load configuration
    try:
        config = Config.load(args.config)
    except FileNotFoundError as e:
        print(f"Error: {e}")
        print("\nPlease create a configuration file at:")
        print(f"  - {Config.get_default_config_path()}")
        print("\nExample configuration:")
        print("""
[General]
refresh_interval = 300
timezone = "Europe/Amsterdam"

[Subscription]
url = "https://outlook.office365.com/owa/calendar/.../calendar.ics"
""")
        return 1
    except Exception as e:
        print(f"Error loading configuration: {e}")
        return 1

    if not config.calendar_url:
        print("Error: no calendar URL configured ([Subscription] url)")
        return 1

    set_timezone(config.timezone)
    day = args.date or datetime.now(get_local_timezone()).date()

    try:
        return asyncio.run(run(config, day, args.watch))
    except KeyboardInterrupt:
        return 0


if __name__ == "__main__":
    sys.exit(main())
