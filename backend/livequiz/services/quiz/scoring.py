from dataclasses import dataclass
from typing import Any, Optional

from livequiz.models import LastAnswer

BASE_SCORE = 1000
TIME_BONUS_MAX = 500  # answering the instant the question opens
STREAK_STEP = 100  # per consecutive correct answer; a miss removes it again


@dataclass
class ScoreResult:
    ok: bool
    reason: Optional[str] = None
    correct: bool = False
    gained: int = 0
    penalty: int = 0
    time_bonus: int = 0
    streak_bonus: int = 0
    correct_answer: Any = None
    streak: int = 0

    def to_reply(self):
        if not self.ok:
            return {'ok': False, 'reason': self.reason}
        return {
            'ok': True,
            'correct': self.correct,
            'gained': self.gained,
            'penalty': self.penalty,
            'correctAnswer': self.correct_answer,
            'streak': self.streak,
        }


def answers_match(submitted, expected) -> bool:
    """Exact match: case-sensitive strings, and booleans never equal numbers."""
    if isinstance(submitted, bool) or isinstance(expected, bool):
        return type(submitted) is type(expected) and submitted == expected
    return submitted == expected


def time_bonus(remaining_ms: int, duration_ms: int) -> int:
    remaining_ms = max(0, remaining_ms)
    if duration_ms <= 0:
        return 0
    return min(TIME_BONUS_MAX, (remaining_ms * TIME_BONUS_MAX) // duration_ms)


def score_answer(session, participant, answer, now: int) -> ScoreResult:
    """Score one submission against the session's current question.

    Rejections (``no-question``, ``already-answered``, ``too-late``) leave the
    participant untouched. Otherwise the participant's score, streak and
    last answer are updated in place.
    """
    question = session.current_question
    if question is None:
        return ScoreResult(ok=False, reason='no-question')
    last = participant.last_answer
    if last is not None and last.qid == question.id:
        return ScoreResult(ok=False, reason='already-answered')
    deadline = session.deadline
    if deadline is None or now > deadline:
        return ScoreResult(ok=False, reason='too-late')

    if answers_match(answer, question.answer):
        participant.streak += 1
        bonus = time_bonus(deadline - now, question.duration_ms)
        streak_bonus = participant.streak * STREAK_STEP
        gained = BASE_SCORE + bonus + streak_bonus
        participant.score += gained
        participant.last_answer = LastAnswer(
            qid=question.id, correct=True, gained=gained,
            time_bonus=bonus, streak_bonus=streak_bonus,
        )
        return ScoreResult(
            ok=True, correct=True, gained=gained, time_bonus=bonus,
            streak_bonus=streak_bonus, correct_answer=question.answer,
            streak=participant.streak,
        )

    penalty = participant.streak * STREAK_STEP
    participant.score = max(0, participant.score - penalty)
    participant.streak = 0
    participant.last_answer = LastAnswer(qid=question.id, correct=False, penalty=penalty)
    return ScoreResult(
        ok=True, correct=False, penalty=penalty,
        correct_answer=question.answer, streak=0,
    )
