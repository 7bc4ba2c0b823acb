from quizroom.models import Player
from quizroom.services.quiz.scoring import (
    MAX_POINTS,
    MIN_POINTS,
    compute_points,
    final_standings,
    podium,
    rank_results,
)


def test_points_bounds():
    assert compute_points(True, 30, 30) == MAX_POINTS == 1000
    assert compute_points(True, 0, 30) == MIN_POINTS == 500


def test_points_example_from_fast_correct_answer():
    # 8 of 10 seconds left: 500 + 0.8 * 500
    assert compute_points(True, 8, 10) == 900


def test_wrong_or_missing_answer_scores_zero():
    assert compute_points(False, 10, 10) == 0
    assert compute_points(False, 0, 10) == 0
    assert compute_points(False, None, 10) == 0
    assert compute_points(True, None, 10) == 0


def test_points_non_decreasing_in_time_remaining():
    for limit in (5, 7, 30, 120):
        points = [compute_points(True, t, limit) for t in range(limit + 1)]
        assert points == sorted(points)
        assert all(MIN_POINTS <= p <= MAX_POINTS for p in points)


def test_half_points_round_up():
    # 500 + (1/8) * 500 = 562.5
    assert compute_points(True, 1, 8) == 563


def test_rank_results_keeps_order_for_ties():
    results = [
        {'name': 'A', 'totalScore': 500},
        {'name': 'B', 'totalScore': 900},
        {'name': 'C', 'totalScore': 500},
    ]
    assert [r['name'] for r in rank_results(results)] == ['B', 'A', 'C']


def test_standings_and_podium():
    players = [Player('Ann', 700), Player('Ben', 1500), Player('Cid', 700), Player('Dot', 0)]
    standings = final_standings(players)
    assert [s['name'] for s in standings] == ['Ben', 'Ann', 'Cid', 'Dot']

    top = podium(standings)
    assert top == [
        {'position': 1, 'name': 'Ben', 'score': 1500},
        {'position': 2, 'name': 'Ann', 'score': 700},
        {'position': 3, 'name': 'Cid', 'score': 700},
    ]


def test_podium_with_fewer_than_three_players():
    standings = final_standings([Player('Solo', 10)])
    assert podium(standings) == [{'position': 1, 'name': 'Solo', 'score': 10}]
    assert podium([]) == []
