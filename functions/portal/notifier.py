"""
Polling notification checker.

Every poll takes the user's newest unread notification and reports it when
it is newer than the last one reported, tracked per user in a MarkerStore.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

from portal.markers import MarkerStore
from portal.portal_service import PortalService
from shared.constants import NOTIFICATION_POLL_SECONDS
from shared.json_utils import timestamp_millis
from shared.records import Notification
from shared.types import MessageStatus

logger = logging.getLogger(__name__)

NotificationCallback = Callable[[Notification], None]


class NotificationChecker:
    def __init__(
        self,
        service: PortalService,
        markers: MarkerStore,
        on_new_notification: Optional[NotificationCallback] = None,
        poll_interval_seconds: float = NOTIFICATION_POLL_SECONDS,
    ):
        self.service = service
        self.markers = markers
        self.on_new_notification = on_new_notification
        self.poll_interval_seconds = poll_interval_seconds

    def check_once(self, user_id: str) -> Optional[Notification]:
        """
        Returns the newest unread notification if it was not reported yet,
        otherwise None. Failures are logged and treated as nothing new.
        """
        try:
            unread = self.service.get_unread_notifications(user_id)
            if not unread:
                return None
            latest = unread[0]
            last_seen = self.markers.get(user_id)
            if last_seen and timestamp_millis(latest.created_at) <= timestamp_millis(last_seen):
                return None
            if self.on_new_notification:
                self.on_new_notification(latest)
            self.markers.set(user_id, latest.created_at)
            return latest
        except Exception:
            logger.exception("Notification check failed for user %s", user_id)
            return None

    def run(self, user_id: str, stop_event: threading.Event) -> None:
        """Checks immediately, then once per interval until `stop_event` is set."""
        logger.info(
            "Polling notifications for %s every %ss", user_id, self.poll_interval_seconds
        )
        while not stop_event.is_set():
            self.check_once(user_id)
            if stop_event.wait(self.poll_interval_seconds):
                break

    def start(self, user_id: str) -> threading.Event:
        """Runs the poller on a daemon thread; set the returned event to stop it."""
        stop_event = threading.Event()
        thread = threading.Thread(
            target=self.run,
            args=(user_id, stop_event),
            name=f"notifications-{user_id}",
            daemon=True,
        )
        thread.start()
        return stop_event

    def notification_counts(self, user_id: str) -> dict:
        unread = self.service.get_unread_notifications(user_id)
        unhandled = [
            m
            for m in self.service.get_messages()
            if (m.sender_id == user_id or m.recipient_id == user_id)
            and m.status != MessageStatus.CLOSED
        ]
        return {
            "unread_notifications": len(unread),
            "unhandled_inquiries": len(unhandled),
        }
