#!/usr/bin/env python3
import argparse
import os
import sys
import threading

# Add project root to path
temp_project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if temp_project_root not in sys.path:
    sys.path.insert(0, temp_project_root)

from config.app_config import get_config
from core.dependency_container import initialize_container, get_service, cleanup_container
from core.exceptions import PanelError
from core.logging_config import setup_structured_logging, get_logger
from core.types import Trigger
from service.units import bytes_to_human

logger = get_logger("usage_monitor")

def print_summary(aggregator) -> None:
    snapshot = aggregator.get_snapshot()
    print(f"{'USERNAME':<24} {'USAGE':>12} {'QUOTA':>8} {'DAYS':>6} {'STATE':>9}")
    for user in snapshot:
        quota = "∞" if user.quota == -1 else f"{user.quota:g} GB"
        days = "∞" if user.days_left == -1 else str(user.days_left)
        state = "enabled" if user.enabled else "disabled"
        print(f"{user.username:<24} {bytes_to_human(user.usage_bytes):>12} {quota:>8} {days:>6} {state:>9}")
    stats = aggregator.stats()
    print(f"\n{len(snapshot)} users, cycle took {stats['last_duration_ms']} ms")

def run_once(aggregator) -> int:
    if not aggregator.run_cycle(Trigger.MANUAL):
        print("Usage aggregation failed, see log for details", file=sys.stderr)
        return 1
    print_summary(aggregator)
    return 0

def run_forever(aggregator) -> int:
    stop = threading.Event()
    aggregator.start()
    logger.info("Usage monitor started", interval=aggregator.config.interval)
    try:
        while not stop.wait(3600):
            pass
    except KeyboardInterrupt:
        logger.info("Usage monitor stopped by user")
    return 0

def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Accumulate Xray per-user traffic and enforce quotas")
    parser.add_argument("--once", action="store_true", help="run a single aggregation cycle and print a summary")
    args = parser.parse_args(argv)

    try:
        config = get_config()
    except PanelError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    setup_structured_logging(config.monitoring.log_level)
    initialize_container(config)
    # Builds the user service, which hooks policy disables to the client sync
    get_service('user_service')
    aggregator = get_service('usage_aggregator')
    try:
        return run_once(aggregator) if args.once else run_forever(aggregator)
    finally:
        cleanup_container()

if __name__ == "__main__":
    sys.exit(main())
