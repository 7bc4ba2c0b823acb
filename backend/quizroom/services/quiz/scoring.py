import math
from typing import Iterable, List, Optional

from quizroom.models import Player

MIN_POINTS = 500
MAX_POINTS = 1000
PODIUM_SIZE = 3


def compute_points(is_correct: bool, time_remaining: Optional[float], time_limit: float) -> int:
    """Points for one answer.

    A correct answer earns between MIN_POINTS and MAX_POINTS depending on how
    much of the countdown was left at the first submission. Wrong answers and
    missing answers earn nothing.
    """
    if not is_correct or time_remaining is None:
        return 0
    time_bonus = (time_remaining / time_limit) * (MAX_POINTS - MIN_POINTS)
    # half-up, so 0.5 always rounds towards more points
    return int(math.floor(MIN_POINTS + time_bonus + 0.5))


def rank_results(results: List[dict]) -> List[dict]:
    # sorted() is stable: equal totals keep the roster order
    return sorted(results, key=lambda r: r['totalScore'], reverse=True)


def final_standings(players: Iterable[Player]) -> List[dict]:
    standings = [{'name': p.name, 'score': p.score} for p in players]
    return sorted(standings, key=lambda s: s['score'], reverse=True)


def podium(standings: List[dict], size: int = PODIUM_SIZE) -> List[dict]:
    return [
        {'position': index + 1, 'name': entry['name'], 'score': entry['score']}
        for index, entry in enumerate(standings[:size])
    ]
