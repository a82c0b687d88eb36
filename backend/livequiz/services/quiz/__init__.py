"""Quiz domain services: scoring, timers, sessions and the session registry.

This package holds the session state machine and is imported by the
Socket.IO handlers, keeping transport concerns separated from the quiz
mechanics.
"""

from .registry import SessionRegistry
from .scoring import score_answer
from .session import Session

__all__ = ['Session', 'SessionRegistry', 'score_answer']
