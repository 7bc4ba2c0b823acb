from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple
import time
import uuid

from quizroom.errors import InvalidQuestionSet

OPTION_COUNT = 4
MAX_SESSION_NAME_LENGTH = 100
MAX_PLAYER_NAME_LENGTH = 40

LOBBY = 'lobby'
PLAYING = 'playing'
FINISHED = 'finished'


@dataclass(frozen=True)
class Question:
    text: str
    options: Tuple[str, str, str, str]
    correct_index: int

    @classmethod
    def from_dict(cls, data) -> 'Question':
        """Build a question from its wire form, rejecting anything malformed."""
        if not isinstance(data, dict):
            raise InvalidQuestionSet('Invalid question format')
        text = data.get('question')
        options = data.get('options')
        correct_index = data.get('correctIndex')
        if not isinstance(text, str) or not text.strip():
            raise InvalidQuestionSet('Invalid question format')
        if not isinstance(options, list) or len(options) != OPTION_COUNT:
            raise InvalidQuestionSet('Each question needs exactly 4 options')
        if any(not isinstance(o, (str, int, float)) or isinstance(o, bool) for o in options):
            raise InvalidQuestionSet('Invalid question format')
        # bool is an int subclass; True must not pass as index 1
        if not isinstance(correct_index, int) or isinstance(correct_index, bool):
            raise InvalidQuestionSet('Invalid question format')
        if not 0 <= correct_index < OPTION_COUNT:
            raise InvalidQuestionSet('correctIndex must be between 0 and 3')
        return cls(
            text=text.strip(),
            options=tuple(str(o) for o in options),
            correct_index=correct_index,
        )

    @property
    def correct_option(self) -> str:
        return self.options[self.correct_index]

    def to_dict(self):
        return {
            'question': self.text,
            'options': list(self.options),
            'correctIndex': self.correct_index,
        }


def parse_question_set(raw) -> Tuple[Question, ...]:
    if not isinstance(raw, list) or not raw:
        raise InvalidQuestionSet('Questions array is required')
    return tuple(Question.from_dict(q) for q in raw)


def sanitize_session_name(name, default: str = 'Quiz') -> str:
    if not isinstance(name, str) or not name.strip():
        return default
    return name.strip()[:MAX_SESSION_NAME_LENGTH]


@dataclass
class Player:
    name: str
    score: int = 0
    current_answer: Optional[int] = None
    # countdown value captured at the first submission of the current question
    answer_time: Optional[int] = None
    # position in the session's join order, assigned when first seated
    joined: int = 0

    @property
    def has_answered(self) -> bool:
        return self.current_answer is not None

    def reset_answer(self) -> None:
        self.current_answer = None
        self.answer_time = None

    def to_dict(self):
        return {'name': self.name, 'score': self.score}


def generate_session_id() -> str:
    """Short id for easier sharing."""
    return uuid.uuid4().hex[:8]


@dataclass
class Session:
    id: str
    name: str
    questions: Tuple[Question, ...]
    host_sid: Optional[str] = None
    players: Dict[str, Player] = field(default_factory=dict)
    # players whose connection dropped, by lower-cased name, kept for rejoining
    departed: Dict[str, Player] = field(default_factory=dict)
    status: str = LOBBY
    current_question_index: int = 0
    time_limit: int = 30
    time_left: int = 0
    created_at: float = field(default_factory=time.time)
    joins: int = 0

    @property
    def room(self) -> str:
        return f"quiz:{self.id}"

    @property
    def current_question(self) -> Optional[Question]:
        if 0 <= self.current_question_index < len(self.questions):
            return self.questions[self.current_question_index]
        return None

    @property
    def is_last_question(self) -> bool:
        return self.current_question_index >= len(self.questions)

    def find_player(self, name: str) -> Optional[Tuple[str, Player]]:
        wanted = name.lower()
        for sid, player in self.players.items():
            if player.name.lower() == wanted:
                return sid, player
        return None

    def seat(self, sid: str, player: Player) -> None:
        """Place ``player`` under ``sid``, keeping players in first-join order."""
        if not player.joined:
            self.joins += 1
            player.joined = self.joins
        self.players[sid] = player
        ordered = sorted(self.players.items(), key=lambda item: item[1].joined)
        self.players.clear()
        self.players.update(ordered)

    def roster(self) -> List[dict]:
        return [p.to_dict() for p in self.players.values()]

    def answered_count(self) -> int:
        return sum(1 for p in self.players.values() if p.has_answered)

    def answer_stats(self) -> List[int]:
        stats = [0] * OPTION_COUNT
        for player in self.players.values():
            if player.has_answered:
                stats[player.current_answer] += 1
        return stats

    def to_snapshot(self):
        return {
            'id': self.id,
            'name': self.name,
            'questions': [q.to_dict() for q in self.questions],
            'players': self.roster(),
            'status': self.status,
        }

    def to_summary(self):
        return {
            'id': self.id,
            'status': self.status,
            'questionCount': len(self.questions),
            'playerCount': len(self.players),
        }
