# ndasurvey/client/notify.py
import logging
from dataclasses import dataclass
from typing import List

logger = logging.getLogger(__name__)

_LEVELS = {"success": logging.INFO, "info": logging.INFO, "error": logging.ERROR}


@dataclass(frozen=True)
class Notice:
    level: str  # success | info | error
    message: str
    description: str = ""


class Notifier:
    """Collects transient user-facing notices for the view layer to show."""

    def __init__(self):
        self.notices: List[Notice] = []

    def _push(self, level: str, message: str, description: str) -> Notice:
        notice = Notice(level, message, description)
        self.notices.append(notice)
        logger.log(_LEVELS[level], "%s: %s %s", level, message, description)
        return notice

    def success(self, message: str, description: str = "") -> Notice:
        return self._push("success", message, description)

    def info(self, message: str, description: str = "") -> Notice:
        return self._push("info", message, description)

    def error(self, message: str, description: str = "") -> Notice:
        return self._push("error", message, description)

    def drain(self) -> List[Notice]:
        """Return pending notices and forget them."""
        pending, self.notices = self.notices, []
        return pending
