# wholesale_cart/services/notification_service.py
import threading
from collections import deque
from dataclasses import dataclass
from datetime import datetime
from typing import List

from wholesale_cart.domain.lines import Channel
from wholesale_cart.utils.clock import Clock, utcnow
from wholesale_cart.utils.settings import MAX_NOTICES
from wholesale_cart.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class Notice:
    channel: Channel
    level: str  # success | info | warning | error
    message: str
    created_at: datetime


class NotificationService:
    """
    User-visible notices (the portal shows them as toasts).
    Kept in a bounded buffer until the UI drains them.
    """

    def __init__(self, max_notices: int = MAX_NOTICES, clock: Clock = utcnow):
        self._notices = deque(maxlen=max_notices)
        self._lock = threading.Lock()
        self.clock = clock

    def notify(self, channel: Channel, level: str, message: str) -> Notice:
        notice = Notice(channel=channel, level=level, message=message, created_at=self.clock())
        logger.info(f"[NOTICE] {channel.value} {level}: {message}")
        with self._lock:
            self._notices.append(notice)
        return notice

    def pending(self) -> List[Notice]:
        with self._lock:
            return list(self._notices)

    def drain(self) -> List[Notice]:
        with self._lock:
            notices = list(self._notices)
            self._notices.clear()
        return notices
