from __future__ import annotations

import logging
import time
from typing import Callable, List, Optional

from cachetools import TTLCache

from app.config.settings import settings
from app.orchestrator.review_session import ReviewSession

logger = logging.getLogger(__name__)

DEFAULT_SESSION_ID = "default"

SessionFactory = Callable[[str], ReviewSession]


def _default_factory(session_id: str) -> ReviewSession:
    return ReviewSession(session_id=session_id)


class SessionRegistry:
    """
    In-memory map of browser session id -> ReviewSession. Nothing is persisted.

    Bounded by `maxsize` (least recently used session is dropped first) and
    sessions idle for longer than `ttl` seconds expire.
    """

    def __init__(
        self,
        factory: SessionFactory = _default_factory,
        maxsize: Optional[int] = None,
        ttl: Optional[float] = None,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        self._factory = factory
        self._sessions: TTLCache = TTLCache(
            maxsize=maxsize or settings.SESSION_MAX_COUNT,
            ttl=ttl or settings.SESSION_TTL_SECONDS,
            timer=timer,
        )

    def get(self, session_id: str | None) -> ReviewSession:
        key = (session_id or "").strip() or DEFAULT_SESSION_ID
        session = self._sessions.get(key)
        if session is None:
            session = self._factory(key)
            logger.info("[%s] Session created", key)
        # re-insert so the idle timer restarts on every access
        self._sessions[key] = session
        return session

    def session_ids(self) -> List[str]:
        return list(self._sessions.keys())
