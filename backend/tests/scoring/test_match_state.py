import pytest

from volleyscore.scoring.match_state import (
    COMPLETED,
    IN_PROGRESS,
    CompletedManually,
    DeleteLastPoint,
    DropSet,
    MatchState,
    PointScored,
    PointUndone,
    RecordPoint,
    SaveMatch,
    SaveSet,
    SetRescored,
    SetState,
    transition,
    undo_target,
)
from volleyscore.scoring.volleyball import (
    MatchAlreadyCompleted,
    NothingToUndo,
    ScoringFormat,
)

# short sets keep the scenarios readable
BEST_OF_3 = ScoringFormat(set_format=3, regular_set_points=3, final_set_points=2)


def play(state, *teams):
    commands = []
    for team in teams:
        state, emitted = transition(state, PointScored(team))
        commands.extend(emitted)
    return state, commands


def test_point_is_recorded_in_current_set():
    state, commands = transition(MatchState(BEST_OF_3), PointScored("our"))

    assert commands == [
        RecordPoint(1, 1, "our", 1, 0),
        SaveSet(SetState(1, 1, 0)),
    ]
    assert state.current == SetState(1, 1, 0)
    assert state.status == IN_PROGRESS


def test_set_win_opens_next_set():
    state, commands = play(MatchState(BEST_OF_3), "our", "our", "our")

    assert state.current_set == 2
    assert state.set(1).winner == "our"
    assert state.current == SetState(2)
    assert commands[-2:] == [SaveSet(SetState(2)), SaveMatch(1, 0, 2, IN_PROGRESS)]


def test_deuce_continues_past_target():
    state, _ = play(MatchState(BEST_OF_3), "our", "opponent", "our", "opponent")
    state, _ = play(state, "our")
    assert state.current == SetState(1, 3, 2)

    state, _ = play(state, "our")
    assert state.set(1).winner == "our"


def test_best_of_three_completes_after_two_wins_without_third_set():
    state, commands = play(MatchState(BEST_OF_3), *["our"] * 6)

    assert state.status == COMPLETED
    assert state.set_wins == (2, 0)
    assert [s.number for s in state.sets] == [1, 2]
    assert commands[-1] == SaveMatch(2, 0, 2, COMPLETED)


def test_deciding_set_uses_final_target():
    state, _ = play(MatchState(BEST_OF_3), *["our"] * 3, *["opponent"] * 3)
    assert state.current_set == 3

    state, _ = play(state, "our", "our")

    assert state.status == COMPLETED
    assert state.set_wins == (2, 1)


def test_scoring_on_completed_match_is_rejected():
    state, _ = play(MatchState(BEST_OF_3), *["our"] * 6)

    with pytest.raises(MatchAlreadyCompleted):
        transition(state, PointScored("opponent"))


def test_undo_within_set():
    state, _ = play(MatchState(BEST_OF_3), "our", "opponent")

    state, commands = transition(state, PointUndone(1, 1, 0))

    assert commands == [DeleteLastPoint(1), SaveSet(SetState(1, 1, 0))]
    assert state.current == SetState(1, 1, 0)


def test_undo_across_set_boundary_rolls_back_the_advance():
    state, _ = play(MatchState(BEST_OF_3), "our", "our", "our")
    assert undo_target(state) == 1

    state, commands = transition(state, PointUndone(1, 2, 0))

    assert commands == [
        DropSet(2),
        DeleteLastPoint(1),
        SaveSet(SetState(1, 2, 0)),
        SaveMatch(0, 0, 1, IN_PROGRESS),
    ]
    assert state.sets == (SetState(1, 2, 0),)
    assert state.current_set == 1
    assert state.status == IN_PROGRESS


def test_undo_of_match_winning_point_reopens_match():
    state, _ = play(MatchState(BEST_OF_3), *["our"] * 6)
    assert undo_target(state) == 2

    state, commands = transition(state, PointUndone(2, 2, 0))

    assert state.status == IN_PROGRESS
    assert state.current_set == 2
    assert state.set_wins == (1, 0)
    assert commands == [
        DeleteLastPoint(2),
        SaveSet(SetState(2, 2, 0)),
        SaveMatch(1, 0, 2, IN_PROGRESS),
    ]


def test_undo_keeps_previous_set_won_when_score_still_wins():
    # set 1 was rescored past its target after play moved on
    state = MatchState(
        BEST_OF_3,
        sets=(SetState(1, 4, 1, "our"), SetState(2)),
        current_set=2,
    )

    state, commands = transition(state, PointUndone(1, 3, 1))

    assert state.current_set == 2
    assert state.status == IN_PROGRESS
    assert state.set(1) == SetState(1, 3, 1, "our")
    assert commands == [
        DropSet(2),
        DeleteLastPoint(1),
        SaveSet(SetState(1, 3, 1, "our")),
        SaveSet(SetState(2)),
        SaveMatch(1, 0, 2, IN_PROGRESS),
    ]


def test_undo_that_restores_a_set_win_can_complete_match():
    state = MatchState(
        BEST_OF_3,
        sets=(SetState(1, 3, 0, "our"), SetState(2, 3, 2), SetState(3)),
        current_set=3,
    )

    state, commands = transition(state, PointUndone(2, 3, 1))

    assert state.status == COMPLETED
    assert state.set_wins == (2, 0)
    assert [s.number for s in state.sets] == [1, 2]
    assert commands[-1] == SaveMatch(2, 0, 2, COMPLETED)


def test_undo_keeps_match_completed_when_deciding_set_still_won():
    state = MatchState(
        BEST_OF_3,
        sets=(SetState(1, 3, 0, "our"), SetState(2, 4, 1, "our")),
        current_set=2,
        status=COMPLETED,
    )

    state, commands = transition(state, PointUndone(2, 3, 1))

    assert state.status == COMPLETED
    assert state.set(2) == SetState(2, 3, 1, "our")
    assert commands == [
        DeleteLastPoint(2),
        SaveSet(SetState(2, 3, 1, "our")),
        SaveMatch(2, 0, 2, COMPLETED),
    ]


def test_undo_on_fresh_match_has_nothing_to_remove():
    state = MatchState(BEST_OF_3)

    with pytest.raises(NothingToUndo):
        undo_target(state)
    with pytest.raises(NothingToUndo):
        transition(state, PointUndone(1, 0, 0))


def test_undo_must_target_the_last_scored_set():
    state, _ = play(MatchState(BEST_OF_3), "our", "our", "our", "opponent")

    with pytest.raises(NothingToUndo):
        transition(state, PointUndone(1, 2, 0))


def test_rescore_that_wins_current_set_advances():
    state, _ = play(MatchState(BEST_OF_3), "opponent", "our", "our")
    assert state.current == SetState(1, 2, 1)

    state, commands = transition(state, SetRescored(1, 3, 0))

    assert state.current_set == 2
    assert state.set(1) == SetState(1, 3, 0, "our")
    assert commands == [
        SaveSet(SetState(1, 3, 0, "our")),
        SaveSet(SetState(2)),
        SaveMatch(1, 0, 2, IN_PROGRESS),
    ]


def test_rescore_never_reopens_completed_match():
    state, _ = play(MatchState(BEST_OF_3), *["our"] * 6)

    state, commands = transition(state, SetRescored(2, 2, 1))

    assert state.status == COMPLETED
    assert state.set(2).winner is None
    assert state.set_wins == (1, 0)
    assert commands[-1] == SaveMatch(1, 0, 2, COMPLETED)


def test_rescore_of_unknown_set():
    with pytest.raises(KeyError):
        transition(MatchState(BEST_OF_3), SetRescored(4, 1, 0))


def test_manual_completion_is_idempotent():
    state, _ = play(MatchState(BEST_OF_3), "our")

    state, commands = transition(state, CompletedManually())
    assert state.status == COMPLETED
    assert commands == [SaveMatch(0, 0, 1, COMPLETED)]

    again, commands = transition(state, CompletedManually())
    assert again == state
    assert commands == [SaveMatch(0, 0, 1, COMPLETED)]


def test_unknown_event_is_rejected():
    with pytest.raises(TypeError):
        transition(MatchState(BEST_OF_3), object())
