import time
import uuid
from dataclasses import dataclass, field
from typing import Any, List, Optional

from livequiz.errors import QuestionSetError

DEFAULT_DURATION_MS = 15000
DEFAULT_PLAYER_NAME = 'Guest'


def now_ms() -> int:
    return int(time.time() * 1000)


def new_id() -> str:
    return str(uuid.uuid4())


@dataclass(frozen=True)
class Question:
    id: str
    prompt: str
    options: tuple
    answer: Any
    duration_ms: int = DEFAULT_DURATION_MS

    def to_dict(self):
        """Public view of the question. Never includes the answer."""
        return {
            'id': self.id,
            'prompt': self.prompt,
            'options': list(self.options),
        }


@dataclass
class LastAnswer:
    qid: str
    correct: bool
    gained: int = 0
    time_bonus: int = 0
    streak_bonus: int = 0
    penalty: int = 0

    def to_dict(self):
        return {
            'qid': self.qid,
            'correct': self.correct,
            'gained': self.gained,
            'timeBonus': self.time_bonus,
            'streakBonus': self.streak_bonus,
            'penalty': self.penalty,
        }


@dataclass
class Participant:
    sid: str
    name: str
    id: str = field(default_factory=new_id)
    score: int = 0
    streak: int = 0
    last_answer: Optional[LastAnswer] = None

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'score': self.score,
            'lastAnswer': self.last_answer.to_dict() if self.last_answer else None,
        }


def clean_name(name, max_length: int = 40) -> str:
    text = str(name).strip() if name is not None else ''
    return (text or DEFAULT_PLAYER_NAME)[:max_length]


def parse_questions(raw, default_duration_ms: int = DEFAULT_DURATION_MS) -> List[Question]:
    """Build Question objects from a host-supplied payload.

    Only the structural shape is checked: a list of objects, each with a
    prompt, a list of options and an answer. Ids default to a fresh uuid and
    a missing or zero duration falls back to ``default_duration_ms``.
    ``durationMs`` is accepted as an alias for ``duration``.
    """
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise QuestionSetError('questions must be a list')

    questions = []
    for idx, item in enumerate(raw):
        if not isinstance(item, dict):
            raise QuestionSetError(f'question {idx} must be an object')
        if 'prompt' not in item or 'answer' not in item:
            raise QuestionSetError(f'question {idx} needs a prompt and an answer')
        options = item.get('options') or []
        if not isinstance(options, (list, tuple)):
            raise QuestionSetError(f'question {idx} options must be a list')
        duration = item.get('duration') or item.get('durationMs') or default_duration_ms
        try:
            duration = int(duration)
        except (TypeError, ValueError):
            raise QuestionSetError(f'question {idx} duration must be a number')
        if duration < 0:
            raise QuestionSetError(f'question {idx} duration must not be negative')
        questions.append(Question(
            id=str(item.get('id') or new_id()),
            prompt=item['prompt'],
            options=tuple(options),
            answer=item['answer'],
            duration_ms=duration or default_duration_ms,
        ))
    return questions
