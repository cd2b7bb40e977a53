"""
Polls a user's notifications and prints each new one as it arrives.
"""

from __future__ import annotations

import argparse
import logging
import sys
import threading
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from portal.config import get_settings
from portal.dependencies import get_marker_store, get_portal_service
from portal.notifier import NotificationChecker
from shared.records import Notification

logger = logging.getLogger(__name__)


def main() -> int:
    parser = argparse.ArgumentParser(description="Course portal notification poller")
    parser.add_argument("user_id", help="User whose notifications are polled")
    parser.add_argument(
        "--interval-seconds",
        type=float,
        default=None,
        help="Seconds between checks (defaults to PORTAL_NOTIFICATION_POLL_SECONDS)",
    )
    parser.add_argument(
        "--bell",
        action="store_true",
        help="Ring the terminal bell on every new notification",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Check a single time and exit",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(name)s %(levelname)s %(asctime)s %(message)s",
        datefmt="%m/%d/%Y %I:%M:%S %p",
    )

    def announce(notification: Notification) -> None:
        logger.info(
            "New %s notification: %s - %s",
            notification.type.value,
            notification.title,
            notification.message,
        )
        if args.bell:
            sys.stdout.write("\a")
            sys.stdout.flush()

    checker = NotificationChecker(
        get_portal_service(),
        get_marker_store(),
        on_new_notification=announce,
        poll_interval_seconds=args.interval_seconds or get_settings().notification_poll_seconds,
    )

    if args.once:
        checker.check_once(args.user_id)
        return 0

    stop_event = threading.Event()
    try:
        checker.run(args.user_id, stop_event)
    except KeyboardInterrupt:
        stop_event.set()
        logger.info("Stopped polling for %s", args.user_id)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
