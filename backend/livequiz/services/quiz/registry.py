import logging
import random
import threading
from typing import Callable, Dict, List, Optional

from .session import Session

logger = logging.getLogger(__name__)

PIN_MIN = 100000
PIN_MAX = 999999


def generate_pin(rng=random) -> str:
    """Six-digit join code, never starting with 0."""
    return str(rng.randint(PIN_MIN, PIN_MAX))


class SessionRegistry:
    """Active sessions keyed by join code.

    The code map has its own lock, separate from each Session's lock, so
    lookups never wait on a session that is busy mutating itself.
    """

    def __init__(self, rng=None):
        self._sessions: Dict[str, Session] = {}
        self._lock = threading.Lock()
        self._rng = rng or random.Random()

    def create_session(self, host_sid: str, session_factory: Callable[[str, str], Session]) -> Session:
        """Register a fresh session under a code no active session is using.

        ``session_factory(code, host_sid)`` builds the Session once the code is
        known, since the session broadcasts to a room named after it.
        """
        with self._lock:
            code = generate_pin(self._rng)
            while code in self._sessions:
                code = generate_pin(self._rng)
            session = session_factory(code, host_sid)
            self._sessions[code] = session
        logger.info(f"[session-create] session={code} id={session.id} host={host_sid}")
        return session

    def get(self, code) -> Optional[Session]:
        if code is None:
            return None
        with self._lock:
            return self._sessions.get(str(code))

    def remove(self, code) -> None:
        with self._lock:
            self._sessions.pop(str(code), None)

    def sessions(self) -> List[Session]:
        with self._lock:
            return list(self._sessions.values())

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def __contains__(self, code) -> bool:
        with self._lock:
            return str(code) in self._sessions

    def sweep_idle(self, max_idle_ms: int, now: int) -> List[str]:
        """End and drop every session idle for longer than ``max_idle_ms``."""
        reaped = []
        for session in self.sessions():
            # Activity may land between the snapshot and taking the session lock
            with session.lock:
                if now - session.last_activity <= max_idle_ms:
                    continue
                with self._lock:
                    if self._sessions.get(session.code) is not session:
                        continue
                    del self._sessions[session.code]
                session.end('idle')
            reaped.append(session.code)
        return reaped
