import unittest

from game import (
    ACTION_CLAIM_ROUTE,
    ACTION_START,
    CURSOR_DEFAULT,
    CURSOR_TARGET,
    LIFT,
    TOP,
    ActionGate,
    ClaimRequest,
    ClaimSession,
    PlayerHand,
    PlayerInfo,
    Route,
    RouteMap,
    SegmentRef,
    TurnContext,
)
from railhand_core.claim import TIMEOUT_MESSAGE


def make_routes():
    return RouteMap([
        Route.of("red", 3),     # 0
        Route.of("blue", 2),    # 1
        Route.of("gray", 4),    # 2
        Route.of("green", 2),   # 3
        Route.of("gray", 2),    # 4
        Route.of("yellow", 2),  # 5
    ])


def make_ctx(cards, coins=45, **kw):
    return TurnContext(
        my_turn=kw.pop("my_turn", True),
        players=(PlayerInfo("me", "red", coins), PlayerInfo("them", "blue", 45)),
        cards=tuple(cards),
        **kw,
    )


class ClaimHarness(unittest.TestCase):
    def setUp(self):
        self.now = 0.0
        self.submitted = []
        self.messages = []
        self.hand = PlayerHand()
        self.routes = make_routes()
        self.session = ClaimSession(
            self.hand,
            self.routes,
            submit=self.submitted.append,
            notify=self.messages.append,
            gate=ActionGate(timeout=5.0),
            clock=lambda: self.now,
        )

    def deal(self, cards, **kw):
        ctx = make_ctx(cards, **kw)
        self.hand.synchronize(ctx.cards)
        return ctx

    def index_of(self, color):
        return self.hand.colors().index(color)

    def select(self, ctx, color):
        return self.session.card_activated(ctx, self.hand.card_at(self.index_of(color)))

    def pin(self, ctx, route_index, segment_index):
        return self.session.route_segment_activated(ctx, SegmentRef(route_index, segment_index))

    def confirm(self, ctx, used_color, **changes):
        cards = list(ctx.cards)
        cards.remove(used_color)
        peer_ctx = ctx.replace(cards=tuple(cards), **changes)
        return self.session.claim_confirmed(peer_ctx)


class TestEligibilityAndSelection(ClaimHarness):
    def test_given_idle_when_card_activated_then_card_lifted_and_targeting(self):
        ctx = self.deal(["red", "red", "blue"])
        card = self.hand.card_at(self.index_of("red"))
        ctx2 = self.session.card_activated(ctx, card)
        self.assertEqual(ctx2.action_count, 1)
        self.assertEqual(ctx2.action_name, ACTION_CLAIM_ROUTE)
        self.assertIs(self.session.selected_card, card)
        self.assertEqual(card.y, TOP - LIFT)
        self.assertEqual(self.session.cursor, CURSOR_TARGET)
        self.assertEqual(self.session.phase, "card-selected")
        # the caller's context is untouched
        self.assertEqual(ctx.action_count, 0)

    def test_given_selected_card_when_activated_again_then_undo_restores_state(self):
        ctx = self.deal(["red", "blue"])
        card = self.hand.card_at(0)
        ctx1 = self.session.card_activated(ctx, card)
        ctx2 = self.session.card_activated(ctx1, card)
        self.assertEqual(ctx2, ctx)
        self.assertEqual(ctx2.action_name, ACTION_START)
        self.assertIsNone(self.session.selected_card)
        self.assertEqual(self.session.cursor, CURSOR_DEFAULT)
        self.assertEqual(card.y, TOP)
        self.assertEqual(self.session.phase, "idle")

    def test_given_mid_claim_when_undo_then_action_name_stays_claim_route(self):
        ctx = self.deal(["red", "red"], action_name=ACTION_CLAIM_ROUTE, action_count=2, selected_route_index=0)
        ctx1 = self.select(ctx, "red")
        self.assertEqual(ctx1.action_count, 3)
        ctx2 = self.session.card_activated(ctx1, self.hand.card_at(0))
        self.assertEqual(ctx2.action_count, 2)
        self.assertEqual(ctx2.action_name, ACTION_CLAIM_ROUTE)

    def test_given_not_my_turn_or_game_over_when_card_activated_then_ignored(self):
        for kw in ({"my_turn": False}, {"game_over": True}, {"action_name": "draw-cards", "action_count": 1}):
            ctx = self.deal(["red"], **kw)
            self.assertIs(self.session.card_activated(ctx, self.hand.card_at(0)), ctx)
            self.assertIsNone(self.session.selected_card)
            self.assertEqual(self.session.cursor, CURSOR_DEFAULT)

    def test_given_card_from_other_zone_when_activated_then_ignored(self):
        ctx = self.deal(["red"])
        other = PlayerHand(location="opponent")
        other.synchronize(["red"])
        self.assertIs(self.session.card_activated(ctx, other.card_at(0)), ctx)
        self.assertIs(self.session.card_activated(ctx, None), ctx)
        self.assertIsNone(self.session.selected_card)

    def test_given_hover_when_eligible_then_highlighted_else_not(self):
        ctx = self.deal(["red"])
        card = self.hand.card_at(0)
        self.session.card_hovered(ctx, card)
        self.assertTrue(card.highlighted)
        self.session.card_unhovered(card)
        self.assertFalse(card.highlighted)
        self.session.card_hovered(ctx.replace(my_turn=False), card)
        self.assertFalse(card.highlighted)


class TestRouteValidation(ClaimHarness):
    def test_given_no_selected_card_when_segment_activated_then_nothing_sent(self):
        ctx = self.deal(["red", "red", "red"])
        self.assertIs(self.pin(ctx, 0, 0), ctx)
        self.assertEqual(self.submitted, [])
        self.assertEqual(self.messages, [])

    def test_given_negative_route_index_when_segment_activated_then_ignored(self):
        ctx = self.select(self.deal(["red", "red", "red"]), "red")
        self.pin(ctx, -1, 0)
        self.assertEqual(self.submitted, [])

    def test_given_claimed_segment_when_pinning_then_rejected(self):
        self.routes.place_coin("blue", 0, 0)
        ctx = self.select(self.deal(["red", "red", "red"]), "red")
        self.pin(ctx, 0, 0)
        self.assertEqual(self.messages, ["Coin already placed!"])
        self.assertEqual(self.submitted, [])
        self.assertFalse(self.session.gate.busy)

    def test_given_wrong_color_when_first_pin_then_color_mismatch(self):
        ctx = self.select(self.deal(["blue", "red", "red", "red"]), "blue")
        self.pin(ctx, 0, 0)
        self.assertEqual(self.messages, ["Color mismatch blue vs red"])
        self.assertEqual(self.submitted, [])
        self.assertEqual(self.session.phase, "card-selected")

    def test_given_too_few_cards_when_first_pin_then_insufficient(self):
        ctx = self.select(self.deal(["red", "red"]), "red")
        self.pin(ctx, 0, 0)
        self.assertEqual(self.messages, ["Insufficient matching cards to claim route!"])

    def test_given_wildcards_when_first_pin_then_they_count_towards_route(self):
        ctx = self.select(self.deal(["red", "rainbow", "rainbow"]), "rainbow")
        self.pin(ctx, 0, 2)
        self.assertEqual(self.messages, [])
        self.assertEqual(self.submitted, [ClaimRequest(3, 0, 2, "rainbow", "red")])

    def test_given_few_coins_when_first_pin_then_not_enough_coins(self):
        ctx = self.select(self.deal(["red", "red", "red"], coins=2), "red")
        self.pin(ctx, 0, 0)
        self.assertEqual(self.messages, ["Not enough coins to claim route!"])
        self.assertEqual(self.submitted, [])

    def test_given_valid_first_pin_when_activated_then_claim_submitted(self):
        ctx = self.select(self.deal(["red", "red", "red"]), "red")
        out = self.pin(ctx, 0, 1)
        self.assertEqual(out, ctx)
        self.assertEqual(self.submitted, [ClaimRequest(3, 0, 1, "red", "red")])
        self.assertEqual(self.submitted[0].to_json(), {
            "routeLength": 3,
            "routeIndex": 0,
            "segmentIndex": 1,
            "selectedCardColor": "red",
            "routeColor": "red",
            "claimId": 1,
        })
        self.assertTrue(self.session.gate.busy)
        self.assertEqual(self.session.pending_request, self.submitted[0])

    def test_given_unknown_route_when_pinning_then_index_error_propagates(self):
        ctx = self.select(self.deal(["red", "red", "red"]), "red")
        with self.assertRaises(IndexError):
            self.pin(ctx, 42, 0)
        with self.assertRaises(IndexError):
            self.pin(ctx, 0, 9)
        self.assertFalse(self.session.gate.busy)


class TestSingleFlight(ClaimHarness):
    def test_given_claim_in_flight_when_segments_activated_again_then_only_one_submission(self):
        ctx = self.select(self.deal(["red", "red", "red"]), "red")
        self.pin(ctx, 0, 0)
        self.pin(ctx, 0, 0)
        self.pin(ctx, 0, 1)
        self.assertEqual(len(self.submitted), 1)

    def test_given_claim_in_flight_when_card_activated_then_ignored(self):
        ctx = self.select(self.deal(["red", "red", "red"]), "red")
        self.pin(ctx, 0, 0)
        self.assertIs(self.session.card_activated(ctx, self.hand.card_at(1)), ctx)
        self.assertIsNotNone(self.session.selected_card)

    def test_given_ack_when_confirmed_then_coin_placed_and_gate_released(self):
        ctx = self.select(self.deal(["red", "red", "red", "blue"]), "red")
        self.pin(ctx, 0, 1)
        out = self.confirm(ctx, "red", action_count=2, selected_route_index=0)
        self.assertEqual(self.routes.get_segment(0, 1).coin_color, "red")
        self.assertFalse(self.session.gate.busy)
        self.assertIsNone(self.session.selected_card)
        self.assertIsNone(self.session.pending_request)
        self.assertEqual(self.session.cursor, CURSOR_DEFAULT)
        self.assertEqual(self.hand.colors(), ["blue", "red", "red"])
        self.assertTrue(all(c.y == TOP for c in self.hand))
        self.assertEqual(out.selected_route_index, 0)

    def test_given_opponent_claim_when_confirmed_then_their_coin_placed(self):
        ctx = self.deal(["red"])
        peer = ctx.replace(current_player_index=1, my_turn=False)
        self.session.claim_confirmed(peer, 1, 0)
        self.assertEqual(self.routes.get_segment(1, 0).coin_color, "blue")

    def test_given_no_pending_claim_when_confirmed_without_indices_then_value_error(self):
        ctx = self.deal(["red"])
        with self.assertRaises(ValueError):
            self.session.claim_confirmed(ctx)

    def test_given_peer_rejection_when_acknowledged_then_gate_released_and_reason_shown(self):
        ctx = self.select(self.deal(["red", "red", "red"]), "red")
        self.pin(ctx, 0, 0)
        self.session.claim_rejected(ctx, "Not your turn")
        self.assertFalse(self.session.gate.busy)
        self.assertEqual(self.messages, ["Not your turn"])
        self.assertIsNotNone(self.session.selected_card)
        self.pin(ctx, 0, 0)
        self.assertEqual(len(self.submitted), 2)

    def test_given_no_ack_when_timeout_passes_then_gate_released(self):
        ctx = self.select(self.deal(["red", "red", "red"]), "red")
        self.pin(ctx, 0, 0)
        self.now = 3.0
        self.session.expire_pending(ctx)
        self.assertTrue(self.session.gate.busy)
        self.now = 6.0
        self.session.expire_pending(ctx)
        self.assertFalse(self.session.gate.busy)
        self.assertEqual(self.messages, [TIMEOUT_MESSAGE])

    def test_given_submit_failure_when_sending_then_gate_released_and_error_raised(self):
        def boom(request):
            raise ConnectionError("peer gone")

        self.session.submit = boom
        ctx = self.select(self.deal(["red", "red", "red"]), "red")
        with self.assertRaises(ConnectionError):
            self.pin(ctx, 0, 0)
        self.assertFalse(self.session.gate.busy)
        self.assertIsNone(self.session.pending_request)

    def test_given_timed_out_claim_when_late_ack_arrives_then_newer_claim_keeps_gate(self):
        ctx = self.select(self.deal(["red", "red", "red", "blue"]), "red")
        self.pin(ctx, 0, 0)
        self.now = 6.0
        self.session.expire_pending(ctx)
        self.pin(ctx, 0, 1)
        first, second = self.submitted
        self.assertNotEqual(first.claim_id, second.claim_id)

        cards = list(ctx.cards)
        cards.remove("red")
        late = ctx.replace(cards=tuple(cards), action_count=2, selected_route_index=0)
        with self.assertRaises(ValueError):
            self.session.claim_confirmed(late, claim_id=first.claim_id)
        out = self.session.claim_confirmed(late, 0, 0, 0, claim_id=first.claim_id)
        self.assertEqual(self.routes.get_segment(0, 0).coin_color, "red")
        self.assertEqual(self.hand.colors(), ["blue", "red", "red"])
        self.assertTrue(self.session.gate.busy)
        self.assertEqual(self.session.pending_request.claim_id, second.claim_id)
        self.assertIsNotNone(self.session.selected_card)

        self.session.card_activated(out, self.hand.card_at(0))
        self.pin(out, 0, 2)
        self.assertEqual(len(self.submitted), 2)

        self.session.claim_confirmed(late, claim_id=second.claim_id)
        self.assertEqual(self.routes.get_segment(0, 1).coin_color, "red")
        self.assertFalse(self.session.gate.busy)
        self.assertIsNone(self.session.selected_card)

    def test_given_timed_out_claim_when_late_rejection_arrives_then_ignored(self):
        ctx = self.select(self.deal(["red", "red", "red"]), "red")
        self.pin(ctx, 0, 0)
        self.now = 6.0
        self.session.expire_pending(ctx)
        self.pin(ctx, 0, 1)
        first, second = self.submitted
        self.session.claim_rejected(ctx, "Coin already placed!", claim_id=first.claim_id)
        self.assertTrue(self.session.gate.busy)
        self.assertEqual(self.messages, [TIMEOUT_MESSAGE])
        self.session.claim_rejected(ctx, "Coin already placed!", claim_id=second.claim_id)
        self.assertFalse(self.session.gate.busy)
        self.assertEqual(self.messages, [TIMEOUT_MESSAGE, "Coin already placed!"])

    def test_given_removed_card_when_activated_then_ignored(self):
        ctx = self.deal(["red", "blue"])
        stale = self.hand.card_at(1)
        self.hand.synchronize(["blue"])
        self.assertIs(self.session.card_activated(ctx, stale), ctx)
        self.assertIsNone(self.session.selected_card)

    def test_given_selected_card_removed_when_segment_activated_then_nothing_sent(self):
        ctx = self.select(self.deal(["red", "red", "red"]), "red")
        self.hand.synchronize(["blue"])
        self.pin(ctx, 0, 0)
        self.assertEqual(self.submitted, [])


class TestFollowUpPins(ClaimHarness):
    def test_given_pinned_route_when_other_route_activated_then_rejected(self):
        ctx = self.select(self.deal(["green", "green", "yellow", "yellow"]), "green")
        self.pin(ctx, 3, 0)
        ctx = self.confirm(ctx, "green", action_name=ACTION_CLAIM_ROUTE, action_count=2, selected_route_index=3)
        ctx = self.select(ctx, "yellow")
        out = self.pin(ctx, 5, 0)
        self.assertEqual(self.messages, ["Cannot claim multiple routes in one turn!"])
        self.assertEqual(len(self.submitted), 1)
        self.assertEqual(out.selected_route_index, 3)
        self.assertEqual([s.coin_color for s in self.routes.get_route(3)], ["red", None])
        self.assertEqual([s.coin_color for s in self.routes.get_route(5)], [None, None])

    def test_given_gray_route_locked_to_green_when_blue_then_rejected_and_rainbow_accepted(self):
        ctx = self.select(self.deal(["green", "green", "blue", "rainbow", "rainbow"]), "green")
        self.pin(ctx, 2, 0)
        self.assertEqual(self.messages, [])
        ctx = self.confirm(
            ctx, "green",
            action_name=ACTION_CLAIM_ROUTE, action_count=2, selected_route_index=2, gray_route_color="green",
        )
        ctx = self.select(ctx, "blue")
        self.pin(ctx, 2, 1)
        self.assertEqual(self.messages, ["Cannot mix colors in gray route"])
        self.assertEqual(len(self.submitted), 1)

        ctx = self.session.card_activated(ctx, self.session.selected_card)  # undo
        self.assertEqual(ctx.action_count, 2)
        ctx = self.select(ctx, "rainbow")
        self.pin(ctx, 2, 1)
        self.assertEqual(len(self.submitted), 2)
        self.assertEqual(self.submitted[1], ClaimRequest(4, 2, 1, "rainbow", "gray"))

    def test_given_gray_route_locked_when_same_color_then_accepted(self):
        ctx = self.select(self.deal(["green", "green"]), "green")
        self.pin(ctx, 4, 0)
        ctx = self.confirm(
            ctx, "green",
            action_name=ACTION_CLAIM_ROUTE, action_count=2, selected_route_index=4, gray_route_color="green",
        )
        ctx = self.select(ctx, "green")
        self.pin(ctx, 4, 1)
        self.assertEqual(len(self.submitted), 2)
        self.assertEqual(self.messages, [])

    def test_given_colored_route_pinned_when_wrong_color_then_mismatch_and_wildcard_ok(self):
        ctx = self.select(self.deal(["blue", "red", "red", "rainbow"]), "red")
        self.pin(ctx, 0, 0)
        ctx = self.confirm(ctx, "red", action_name=ACTION_CLAIM_ROUTE, action_count=2, selected_route_index=0)
        ctx = self.select(ctx, "blue")
        self.pin(ctx, 0, 1)
        self.assertEqual(self.messages, ["Color mismatch blue vs red"])
        ctx = self.session.card_activated(ctx, self.session.selected_card)
        ctx = self.select(ctx, "rainbow")
        self.pin(ctx, 0, 1)
        self.assertEqual(self.submitted[-1], ClaimRequest(3, 0, 1, "rainbow", "red"))

    def test_given_turn_passes_when_card_lifted_then_selection_dropped(self):
        ctx = self.select(self.deal(["red", "blue"]), "red")
        card = self.session.selected_card
        out = self.session.turn_changed(ctx.replace(my_turn=False))
        self.assertFalse(out.my_turn)
        self.assertIsNone(self.session.selected_card)
        self.assertEqual(self.session.cursor, CURSOR_DEFAULT)
        self.assertEqual(card.y, TOP)


class TestActionGate(unittest.TestCase):
    def test_given_gate_when_acquired_twice_then_second_refused(self):
        gate = ActionGate()
        self.assertTrue(gate.acquire(0.0))
        self.assertFalse(gate.acquire(1.0))
        self.assertTrue(gate.busy)
        gate.release()
        self.assertFalse(gate.busy)
        self.assertTrue(gate.acquire(2.0))

    def test_given_no_timeout_when_checking_expiry_then_never_expires(self):
        gate = ActionGate()
        gate.acquire(0.0)
        self.assertFalse(gate.expired(1e9))
        timed = ActionGate(timeout=1.0)
        self.assertFalse(timed.expired(5.0))
        timed.acquire(0.0)
        self.assertTrue(timed.expired(1.0))


if __name__ == "__main__":
    unittest.main(verbosity=2)
