import logging
import threading
from typing import Callable, Dict, List, Optional

from livequiz.models import (
    DEFAULT_DURATION_MS,
    Participant,
    Question,
    clean_name,
    new_id,
    now_ms,
    parse_questions,
)
from .scoring import ScoreResult, score_answer

logger = logging.getLogger(__name__)

NOT_STARTED = 'not_started'
IN_QUESTION = 'in_question'
ENDED = 'ended'


class Session:
    """One running quiz: question cursor, deadline, participants and the advance timer.

    Every public method takes ``self.lock`` for its whole check-then-mutate
    sequence, and the auto-advance timer re-enters through the same lock, so
    a timer firing and a racing answer or host command never interleave.

    ``broadcast(event, payload)`` delivers to every connection in the
    session's room. ``timer_factory(delay_ms, callback)`` returns a started
    timer with a ``cancel()`` method; it calls ``callback(timer)`` once the
    delay elapses unless cancelled first.
    """

    def __init__(
        self,
        code: str,
        host_sid: str,
        broadcast: Callable[[str, dict], None],
        timer_factory: Callable,
        clock: Callable[[], int] = now_ms,
        default_duration_ms: int = DEFAULT_DURATION_MS,
        advance_grace_ms: int = 50,
        max_name_length: int = 40,
    ):
        self.id = new_id()
        self.code = code
        self.host_sid = host_sid
        self.questions: List[Question] = []
        self.index = -1
        self.deadline: Optional[int] = None
        self.participants: Dict[str, Participant] = {}
        self.ended_reason: Optional[str] = None
        self.lock = threading.RLock()
        self.clock = clock
        self.last_activity = clock()
        self._broadcast = broadcast
        self._timer_factory = timer_factory
        self._timer = None
        self._default_duration_ms = default_duration_ms
        self._advance_grace_ms = advance_grace_ms
        self._max_name_length = max_name_length

    @property
    def state(self) -> str:
        if self.ended_reason is not None:
            return ENDED
        if self.index < 0:
            return NOT_STARTED
        return IN_QUESTION

    @property
    def current_question(self) -> Optional[Question]:
        if self.ended_reason is not None or not 0 <= self.index < len(self.questions):
            return None
        return self.questions[self.index]

    @property
    def has_pending_timer(self) -> bool:
        return self._timer is not None

    def is_host(self, sid: str) -> bool:
        return sid == self.host_sid

    # ---- lifecycle ----

    def start(self, raw_questions) -> dict:
        """Replace the question list and open the first question.

        Raises QuestionSetError before anything is mutated if the payload is
        malformed.
        """
        with self.lock:
            if self.ended_reason is not None:
                return {'ok': False, 'reason': 'ended'}
            questions = parse_questions(raw_questions, self._default_duration_ms)
            self.questions = questions
            self.index = -1
            self.deadline = None
            self._touch()
            logger.info(f"[session-start] session={self.code} questions={len(questions)}")
            self._advance()
            return {'ok': True}

    def advance(self) -> dict:
        with self.lock:
            self._touch()
            return self._advance()

    def end(self, reason: str) -> None:
        with self.lock:
            self._end(reason)

    def _advance(self) -> dict:
        self._cancel_timer()
        if self.ended_reason is not None:
            return {'ok': False, 'reason': 'no-more'}

        self.index += 1
        question = self.current_question
        if question is None:
            self.index = len(self.questions)
            self._end('done')
            return {'ok': False, 'reason': 'no-more'}

        self.deadline = self.clock() + question.duration_ms
        payload = question.to_dict()
        payload.update({
            'deadline': self.deadline,
            'index': self.index,
            'total': len(self.questions),
        })
        self._broadcast('question', payload)

        delay = question.duration_ms + self._advance_grace_ms
        self._timer = self._timer_factory(delay, self._on_timer)
        logger.info(
            f"[timer-set] session={self.code} index={self.index} duration={question.duration_ms}ms deadline={self.deadline}"
        )
        return {'ok': True}

    def _on_timer(self, timer) -> None:
        with self.lock:
            if timer is not self._timer:
                logger.debug(f"[timer-stale] session={self.code} index={self.index}")
                return
            self._timer = None
            logger.info(f"[timer-fire] session={self.code} index={self.index}")
            self._touch()
            self._advance()

    def _end(self, reason: str) -> None:
        self._cancel_timer()
        self.ended_reason = reason
        self.deadline = None
        self._broadcast('session-end', {'reason': reason})
        logger.info(f"[session-end] session={self.code} reason={reason}")

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _touch(self) -> None:
        self.last_activity = self.clock()

    # ---- participants ----

    def join(self, sid: str, name) -> Participant:
        with self.lock:
            participant = Participant(sid=sid, name=clean_name(name, self._max_name_length))
            self.participants[sid] = participant
            self._touch()
            self._broadcast('participant-joined', {'id': participant.id, 'name': participant.name})
            self._broadcast_leaderboard()
            return participant

    def remove_participant(self, sid: str) -> bool:
        with self.lock:
            if self.participants.pop(sid, None) is None:
                return False
            self._touch()
            self._broadcast_leaderboard()
            return True

    def submit_answer(self, sid: str, answer) -> ScoreResult:
        with self.lock:
            participant = self.participants.get(sid)
            if participant is None:
                return ScoreResult(ok=False, reason='not-joined')
            result = score_answer(self, participant, answer, self.clock())
            if result.ok:
                self._touch()
                self._broadcast_leaderboard()
            return result

    def leaderboard(self) -> List[dict]:
        """Participants by descending score; ties keep join order (sorted() is stable)."""
        with self.lock:
            ranked = sorted(self.participants.values(), key=lambda p: -p.score)
            return [p.to_dict() for p in ranked]

    def _broadcast_leaderboard(self) -> None:
        self._broadcast('leaderboard', self.leaderboard())
