import pytest

from volleyscore.scoring import volleyball
from volleyscore.scoring.volleyball import LedgerPoint, ScoringFormat


def test_set_needs_target_and_two_point_margin():
    assert volleyball.check_set_win(24, 20, 25) is None
    assert volleyball.check_set_win(25, 24, 25) is None
    assert volleyball.check_set_win(25, 23, 25) == "our"
    assert volleyball.check_set_win(26, 24, 25) == "our"
    assert volleyball.check_set_win(23, 25, 25) == "opponent"


def test_deuce_has_no_score_cap():
    assert volleyball.check_set_win(40, 39, 25) is None
    assert volleyball.check_set_win(40, 42, 25) == "opponent"


def test_final_set_uses_lower_target():
    assert volleyball.check_set_win(15, 13, 15) == "our"
    assert volleyball.check_set_win(15, 14, 15) is None


def test_needed_set_wins_per_format():
    assert [volleyball.needed_set_wins(f) for f in (1, 3, 5, 7)] == [1, 2, 3, 4]


@pytest.mark.parametrize("set_format", [0, 2, 4, 9, True])
def test_unknown_set_format_is_rejected(set_format):
    with pytest.raises(volleyball.InvalidFormat):
        volleyball.needed_set_wins(set_format)


def test_is_final_set_is_last_possible_set():
    assert volleyball.is_final_set(3, 3)
    assert not volleyball.is_final_set(2, 3)
    assert volleyball.is_final_set(1, 1)


def test_format_targets():
    fmt = ScoringFormat(set_format=5)
    assert fmt.needed_wins == 3
    assert fmt.target_points(4) == 25
    assert fmt.target_points(5) == 15


def test_format_rejects_non_positive_targets():
    with pytest.raises(volleyball.InvalidFormat):
        ScoringFormat(set_format=3, regular_set_points=0)
    with pytest.raises(volleyball.InvalidFormat):
        ScoringFormat(set_format=3, final_set_points=-1)
    with pytest.raises(volleyball.InvalidFormat):
        ScoringFormat(set_format=6)


def test_invalid_team_rejected():
    with pytest.raises(volleyball.InvalidTeam):
        volleyball.add_point(0, 0, "home")


def test_count_set_wins_ignores_open_sets():
    assert volleyball.count_set_wins(["our", None, "opponent", "our"]) == (2, 1)


def test_replay_builds_running_totals():
    points = volleyball.replay(["our", "our", "opponent"])
    assert [(p.point_number, p.our_after, p.opponent_after) for p in points] == [
        (1, 1, 0),
        (2, 2, 0),
        (3, 2, 1),
    ]


def test_reassign_recomputes_from_edited_point():
    points = volleyball.replay(["our", "our", "opponent"])

    rescored = volleyball.reassign(points, 0, "opponent")

    assert [p.scoring_team for p in rescored] == ["opponent", "our", "opponent"]
    assert [(p.our_after, p.opponent_after) for p in rescored] == [
        (0, 1),
        (1, 1),
        (1, 2),
    ]
    assert volleyball.final_score(rescored) == (1, 2)


def test_reassign_leaves_earlier_points_untouched():
    points = volleyball.replay(["our", "opponent", "opponent", "our"])

    rescored = volleyball.reassign(points, 2, "our")

    assert rescored[:2] == points[:2]
    assert [(p.our_after, p.opponent_after) for p in rescored[2:]] == [(2, 1), (3, 1)]


def test_reassign_keeps_stored_point_numbers():
    points = [
        LedgerPoint(1, "our", 1, 0),
        LedgerPoint(3, "our", 2, 0),
    ]
    rescored = volleyball.reassign(points, 1, "opponent")
    assert rescored[1] == LedgerPoint(3, "opponent", 1, 1)


def test_reassign_out_of_range():
    with pytest.raises(IndexError):
        volleyball.reassign(volleyball.replay(["our"]), 1, "opponent")


def test_final_score_of_empty_set():
    assert volleyball.final_score([]) == (0, 0)
