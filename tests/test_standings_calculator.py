import pytest

from cafebracket.controllers.tournament import (
    StandingsCalculator,
    medal_for_rank,
    winrate_percent,
)
from cafebracket.models.tournament import LifecycleState, Match, RoundData, Tournament


def _tournament(roster, rounds, state=LifecycleState.ACTIVE):
    history = [
        RoundData(number=i + 1, matches=matches) for i, matches in enumerate(rounds)
    ]
    return Tournament(
        name="Standings Cup",
        roster=roster,
        total_rounds=len(rounds),
        round_duration_minutes=50,
        lifecycle_state=state,
        current_round_number=len(rounds),
        history=history,
    )


def test_two_round_example_ranks_unbeaten_player_first():
    tournament = _tournament(
        ["A", "B", "C", "D"],
        [
            [Match("A", "B", "A"), Match("C", "D", "C")],
            [Match("A", "C", "A"), Match("B", "D", "B")],
        ],
    )

    rows = StandingsCalculator().calculate(tournament)

    first = rows[0]
    assert (first.player, first.wins, first.losses, first.winrate) == ("A", 2, 0, 100)
    assert first.rank == 0
    # B and C are both 1-1 at 50%; roster order decides
    assert [r.player for r in rows] == ["A", "B", "C", "D"]
    assert rows[3].wins == 0 and rows[3].losses == 2 and rows[3].winrate == 0


def test_ties_keep_roster_order():
    tournament = _tournament(
        ["Zed", "Amy", "Moe", "Bob"],
        [[Match("Zed", "Moe", "Zed"), Match("Amy", "Bob", "Amy")]],
    )

    rows = StandingsCalculator().calculate(tournament)

    assert [r.player for r in rows] == ["Zed", "Amy", "Moe", "Bob"]


def test_winrate_breaks_ties_on_wins():
    # Ana: 1 win from a bye, 0 losses. Bruno: 1 win, 1 loss.
    tournament = _tournament(
        ["Bruno", "Carla", "Ana"],
        [
            [Match("Bruno", "Carla", "Bruno"), Match.bye("Ana")],
            [Match("Bruno", "Carla", "Carla")],
        ],
    )

    rows = StandingsCalculator().calculate(tournament)

    assert [r.player for r in rows][:2] == ["Ana", "Bruno"]
    assert rows[0].winrate == 100
    assert rows[1].winrate == 50


def test_bye_counts_as_win_without_loss():
    tournament = _tournament(["Ana", "Bruno", "Carla"], [[Match("Ana", "Bruno"), Match.bye("Carla")]])

    stats = StandingsCalculator().tally(tournament)

    assert stats == {"Ana": [0, 0], "Bruno": [0, 0], "Carla": [1, 0]}


def test_undecided_matches_are_ignored():
    tournament = _tournament(["Ana", "Bruno"], [[Match("Ana", "Bruno")]])
    rows = StandingsCalculator().calculate(tournament)
    assert all(r.wins == 0 and r.losses == 0 and r.winrate == 0 for r in rows)


def test_medals_only_once_finished():
    rounds = [[Match("A", "B", "A"), Match("C", "D", "C")]]
    active = StandingsCalculator().calculate(_tournament(["A", "B", "C", "D"], rounds))
    assert all(r.medal is None for r in active)

    finished = StandingsCalculator().calculate(
        _tournament(["A", "B", "C", "D"], rounds, LifecycleState.FINISHED)
    )
    assert [r.medal for r in finished] == ["gold", "silver", "bronze", None]


def test_calculation_does_not_touch_the_tournament():
    tournament = _tournament(["A", "B"], [[Match("A", "B", "B")]])
    before = tournament.to_dict()
    StandingsCalculator().calculate(tournament)
    assert tournament.to_dict() == before


@pytest.mark.parametrize(
    "wins, losses, expected",
    [(0, 0, 0), (1, 0, 100), (1, 1, 50), (1, 2, 33), (2, 1, 67), (1, 7, 13), (1, 199, 1)],
)
def test_winrate_rounds_half_up(wins, losses, expected):
    assert winrate_percent(wins, losses) == expected


def test_medal_for_rank():
    assert medal_for_rank(0, True) == "gold"
    assert medal_for_rank(2, True) == "bronze"
    assert medal_for_rank(3, True) is None
    assert medal_for_rank(0, False) is None
