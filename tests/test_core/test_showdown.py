"""
Tests for showdown and pot distribution.
"""

from pokersite.core.game import HoldemEngine
from pokersite.core.results import PhaseAdvanced, Showdown

from tests.conftest import chips_in_play, seat, stacked


def check_down(engine):
    """Check every remaining street; returns the final record."""
    result = None
    while engine.is_hand_running():
        result = engine.handle_action(engine.current_player_seat, "check")
    return result


class TestShowdownWinner:
    """Tests for picking the winner."""

    def test_best_hand_wins(self, heads_up):
        heads_up.handle_action(0, "call")
        result = check_down(heads_up)

        assert isinstance(result, Showdown)
        assert len(result.pot_results) == 1
        pot = result.pot_results[0]
        assert pot.amount == 20
        assert pot.eligible_seats == [0, 1]
        assert [(w.seat_index, w.amount) for w in pot.winners] == [(0, 20)]

    def test_showdown_players(self, heads_up):
        heads_up.handle_action(0, "call")
        result = check_down(heads_up)

        by_seat = {p.seat_index: p for p in result.players}
        assert by_seat[0].best_hand.score.name == "Pair"
        assert by_seat[1].best_hand.score.name == "Pair"
        assert by_seat[0].chips == 1010
        assert len(result.community_cards) == 5

    def test_showdown_to_dict(self, heads_up):
        heads_up.handle_action(0, "call")
        data = check_down(heads_up).to_dict()

        assert data["type"] == "showdown"
        assert data["pot_results"][0]["winners"][0]["username"] == "alice"
        assert data["players"][0]["best_hand"]["description"] == "Pair of Aces"
        assert data["last_action"]["action"] == "check"

    def test_folded_hand_not_shown(self, config):
        engine = HoldemEngine(config, rng=stacked(
            ["2c 3c", "4d 5d", "6h 7h"], "As Ks Qs Js Ts",
        ))
        engine.start_hand([seat(0), seat(1), seat(2)])
        engine.handle_action(0, "call")
        engine.handle_action(1, "fold")
        engine.handle_action(2, "check")
        result = check_down(engine)

        folded = next(p for p in result.players if p.seat_index == 1)
        assert folded.folded
        assert folded.hand is None
        assert folded.best_hand is None


class TestSplitPots:
    """Tests for ties and odd chips."""

    def test_even_split(self, config):
        """A royal flush on the board plays for both."""
        engine = HoldemEngine(config, rng=stacked(["2c 3d", "4c 5d"], "As Ks Qs Js Ts"))
        engine.start_hand([seat(0), seat(1)])
        engine.handle_action(0, "call")
        result = check_down(engine)

        winners = result.pot_results[0].winners
        assert [(w.seat_index, w.amount) for w in winners] == [(0, 10), (1, 10)]
        assert engine.get_player(0).chips == 1000
        assert engine.get_player(1).chips == 1000

    def test_odd_chip_to_lowest_seat(self, config):
        """
        Seat 1 posts the small blind and folds, leaving 25 in the middle.

        Pots are 15 (three players paid 5) and 10; each splits between
        seats 0 and 2 with the odd chip going to seat 0.
        """
        engine = HoldemEngine(config, rng=stacked(
            ["2c 3c", "4d 5d", "6h 7h"], "As Ks Qs Js Ts",
        ))
        engine.start_hand([seat(0), seat(1), seat(2)])
        engine.handle_action(0, "call")
        engine.handle_action(1, "fold")
        engine.handle_action(2, "check")
        result = check_down(engine)

        assert [p.amount for p in result.pot_results] == [15, 10]
        assert [(w.seat_index, w.amount) for w in result.pot_results[0].winners] == [(0, 8), (2, 7)]
        assert [(w.seat_index, w.amount) for w in result.pot_results[1].winners] == [(0, 5), (2, 5)]
        assert engine.get_player(0).chips == 1003
        assert engine.get_player(1).chips == 995
        assert engine.get_player(2).chips == 1002
        assert chips_in_play(engine) == 3000


class TestSidePotShowdown:
    """Tests for awarding side pots to different winners."""

    def test_short_stack_wins_main_pot(self, config):
        engine = HoldemEngine(config, rng=stacked(
            ["Ks Kh", "Qs Qh", "As Ah"], "2d 3c 7h 9s Jd",
        ))
        engine.start_hand([seat(0, chips=100), seat(1), seat(2)])

        engine.handle_action(0, "allin")
        engine.handle_action(1, "call")
        flop = engine.handle_action(2, "call")
        assert isinstance(flop, PhaseAdvanced)
        assert not flop.all_in_runout

        engine.handle_action(1, "allin")
        turn = engine.handle_action(2, "call")
        assert turn.all_in_runout
        assert set(turn.reveal.hands) == {0, 1, 2}

        river = engine.advance_runout()
        assert river.reveal is None
        result = engine.advance_runout()

        assert isinstance(result, Showdown)
        main, side = result.pot_results
        assert (main.amount, main.eligible_seats) == (300, [0, 1, 2])
        assert (side.amount, side.eligible_seats) == (1800, [1, 2])
        assert [w.seat_index for w in main.winners] == [0]
        assert [w.seat_index for w in side.winners] == [1]

        assert engine.get_player(0).chips == 300
        assert engine.get_player(1).chips == 1800
        assert engine.get_player(2).chips == 0
        assert engine.pot == 0
        assert chips_in_play(engine) == 2100
