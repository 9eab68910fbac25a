# fastbite/notices.py
from __future__ import annotations

import logging
from typing import Callable, Optional

from .schemas import Notice

logger = logging.getLogger(__name__)

NotifyFn = Callable[[Notice], None]

_LEVELS = {
    "info": logging.INFO,
    "success": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.WARNING,
}


def log_notice(notice: Notice) -> None:
    """Default sink: user-facing messages go to the log."""
    logger.log(_LEVELS.get(notice.level, logging.INFO), "[%s] %s %s", notice.level, notice.title, notice.description)


class Notifier:
    def __init__(self, notify: Optional[NotifyFn] = None):
        self._notify = notify

    def __call__(self, level: str, title: str, description: str = "", link: str | None = None) -> Notice:
        notice = Notice(level=level, title=title, description=description, link=link)
        log_notice(notice)
        if self._notify:
            self._notify(notice)
        return notice
