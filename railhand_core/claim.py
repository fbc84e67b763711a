from __future__ import annotations

import itertools
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

from .card import Card
from .colors import GRAY, WILDCARD
from .context import ACTION_CLAIM_ROUTE, ACTION_START, TurnContext
from .gate import ActionGate
from .hand import PlayerHand
from .layout import has_cards_to_claim
from .routes import RouteMap

logger = logging.getLogger(__name__)

CURSOR_DEFAULT = 'default'
CURSOR_TARGET = 'crosshair'
LIFT = 10  # how far a selected card is raised
TIMEOUT_MESSAGE = 'Claim timed out, please try again'


@dataclass(frozen=True)
class SegmentRef:
    """Identifies a clicked route segment. A negative route index means "not a route"."""
    route_index: int = -1
    index: int = 0


@dataclass(frozen=True)
class ClaimRequest:
    route_length: int
    route_index: int
    segment_index: int
    selected_card_color: str
    route_color: str
    claim_id: int = field(default=0, compare=False)

    def to_json(self) -> Dict[str, Any]:
        return {
            'routeLength': self.route_length,
            'routeIndex': self.route_index,
            'segmentIndex': self.segment_index,
            'selectedCardColor': self.selected_card_color,
            'routeColor': self.route_color,
            'claimId': self.claim_id,
        }


@dataclass(frozen=True)
class _Pending:
    request: ClaimRequest
    player_index: int


class ClaimSession:
    """
    Drives card selection and route-segment claiming for the local player.

    The session owns the UI side of a claim: which card is lifted, the cursor,
    and the single-flight gate. Turn/action state arrives as a TurnContext on
    every call and the (possibly updated) context is returned.

    Phases: Idle (no card lifted, even action count) and CardSelected (a card is
    lifted, odd action count).
    """

    def __init__(
        self,
        hand: PlayerHand,
        routes: RouteMap,
        submit: Callable[[ClaimRequest], None],
        notify: Callable[[str], None],
        gate: Optional[ActionGate] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.hand = hand
        self.routes = routes
        self.submit = submit
        self.notify = notify
        self.gate = gate if gate is not None else ActionGate()
        self.clock = clock
        self.selected_card: Optional[Card] = None
        self.cursor = CURSOR_DEFAULT
        self._pending: Optional[_Pending] = None
        self._claim_ids = itertools.count(1)

    @property
    def phase(self) -> str:
        return 'card-selected' if self.selected_card is not None else 'idle'

    @property
    def pending_request(self) -> Optional[ClaimRequest]:
        return self._pending.request if self._pending else None

    # ---------- eligibility ----------

    def can_do_action(self, ctx: TurnContext) -> bool:
        if ctx.is_game_over():
            return False
        if not ctx.my_turn:
            return False
        if ctx.action_count == 0:
            return True
        return ctx.action_name == ACTION_CLAIM_ROUTE

    # ---------- hover affordance ----------

    def card_hovered(self, ctx: TurnContext, card: Optional[Card]) -> None:
        if card is not None and self.can_do_action(ctx) and self.hand.owns(card):
            card.highlight()

    def card_unhovered(self, card: Optional[Card]) -> None:
        if card is not None and self.hand.owns(card):
            card.unhighlight()

    # ---------- card selection ----------

    def card_activated(self, ctx: TurnContext, card: Optional[Card]) -> TurnContext:
        if self.gate.busy:
            logger.debug('card ignored: claim in flight')
            return ctx
        if card is None or not self.can_do_action(ctx) or not self.hand.owns(card):
            logger.debug('card ignored: not eligible')
            return ctx
        card.unhighlight()
        if ctx.action_count % 2 == 0:
            return self._select_card(ctx, card)
        return self._undo_card(ctx)

    def _select_card(self, ctx: TurnContext, card: Card) -> TurnContext:
        card.inc_y(-LIFT)
        self.selected_card = card
        self.cursor = CURSOR_TARGET
        return ctx.with_action(ACTION_CLAIM_ROUTE, ctx.action_count + 1)

    def _undo_card(self, ctx: TurnContext) -> TurnContext:
        if self.selected_card is not None:
            self.selected_card.inc_y(LIFT)
        count = ctx.action_count - 1
        self.selected_card = None
        self.cursor = CURSOR_DEFAULT
        self.hand.render()
        return ctx.with_action(ACTION_CLAIM_ROUTE if count > 0 else ACTION_START, count)

    # ---------- route claiming ----------

    def can_claim_route(self, ctx: TurnContext, route_index: int, segment_index: int) -> bool:
        """Applies the claim rules for one segment, notifying the reason on rejection."""
        route = self.routes.get_route(route_index)
        segment = self.routes.get_segment(route_index, segment_index)
        route_color = route.color
        card_color = self.selected_card.color if self.selected_card else None
        if card_color is None:
            return False

        if segment.claimed:
            self.notify('Coin already placed!')
            return False

        if ctx.selected_route_index < 0:
            # first pin of this claim
            if card_color != WILDCARD and route_color != GRAY and route_color != card_color:
                self.notify(f'Color mismatch {card_color} vs {route_color}')
                return False
            if not has_cards_to_claim(route, self.hand.counter):
                self.notify('Insufficient matching cards to claim route!')
                return False
            if len(route) > ctx.me.coins:
                self.notify('Not enough coins to claim route!')
                return False
            return True

        if ctx.selected_route_index != route_index:
            self.notify('Cannot claim multiple routes in one turn!')
            return False
        if card_color == WILDCARD:
            return True
        if route_color != GRAY:
            if route_color != card_color:
                self.notify(f'Color mismatch {card_color} vs {route_color}')
                return False
            return True
        if ctx.gray_route_color and card_color != ctx.gray_route_color:
            self.notify('Cannot mix colors in gray route')
            return False
        return True

    def route_segment_activated(self, ctx: TurnContext, segment: SegmentRef) -> TurnContext:
        if self.gate.busy:
            logger.debug('segment ignored: claim in flight')
            return ctx
        if segment.route_index < 0 or not self.hand.owns(self.selected_card) or not self.can_do_action(ctx):
            return ctx
        if self.can_claim_route(ctx, segment.route_index, segment.index):
            self._send_action(ctx, segment.route_index, segment.index, self.selected_card.color)
        return ctx

    def _send_action(self, ctx: TurnContext, route_index: int, segment_index: int, card_color: str) -> None:
        route = self.routes.get_route(route_index)
        request = ClaimRequest(
            route_length=len(route),
            route_index=route_index,
            segment_index=segment_index,
            selected_card_color=card_color,
            route_color=route.color,
            claim_id=next(self._claim_ids),
        )
        self.gate.acquire(self.clock())
        self._pending = _Pending(request, ctx.me_index)
        logger.info('submitting claim %s', request)
        try:
            self.submit(request)
        except Exception:
            self.gate.release()
            self._pending = None
            raise

    # ---------- acknowledgments ----------

    def _answers_pending(
        self,
        claim_id: Optional[int],
        route_index: Optional[int],
        segment_index: Optional[int],
        player_index: Optional[int],
    ) -> bool:
        """Whether an acknowledgment answers the claim currently in flight."""
        pending = self._pending
        if pending is None:
            return False
        if claim_id is not None:
            return claim_id == pending.request.claim_id
        if player_index is not None and player_index != pending.player_index:
            return False
        if route_index is None or segment_index is None:
            return True
        return (route_index, segment_index) == (pending.request.route_index, pending.request.segment_index)

    def claim_confirmed(
        self,
        ctx: TurnContext,
        route_index: Optional[int] = None,
        segment_index: Optional[int] = None,
        player_index: Optional[int] = None,
        claim_id: Optional[int] = None,
    ) -> TurnContext:
        """
        Applies a confirmed claim: places the claimer's coin, adopts the peer's
        context and re-synchronizes the hand. Without explicit indices the
        pending local claim is the one confirmed.

        Only an acknowledgment of the claim in flight releases the gate and the
        lifted card. Anything else (an opponent's claim, or a late answer to a
        claim that already timed out) just places its coin and adopts the context.
        """
        pending = self._pending
        ours = self._answers_pending(claim_id, route_index, segment_index, player_index)
        if route_index is None or segment_index is None:
            if not ours:
                raise ValueError('claim confirmed without a matching pending claim or segment indices')
            route_index = pending.request.route_index
            segment_index = pending.request.segment_index
        if player_index is None:
            player_index = pending.player_index if ours else ctx.current_player_index
        coin_color = ctx.players[player_index].color
        self.routes.place_coin(coin_color, route_index, segment_index)
        self.hand.synchronize(ctx.cards)

        if not ours:
            logger.info('claim on route %s segment %s by player %s applied without releasing the gate',
                        route_index, segment_index, player_index)
            return ctx

        self.selected_card = None
        self.cursor = CURSOR_DEFAULT
        self._pending = None
        self.gate.release()
        logger.info('claim confirmed: route %s segment %s by player %s', route_index, segment_index, player_index)
        return self.turn_changed(ctx)

    def claim_rejected(self, ctx: TurnContext, reason: str, claim_id: Optional[int] = None) -> TurnContext:
        """The peer refused the pending claim; the selection stays in place."""
        if claim_id is not None and not self._answers_pending(claim_id, None, None, None):
            logger.info('ignoring late rejection of claim %s: %s', claim_id, reason)
            return ctx
        logger.info('claim rejected by peer: %s', reason)
        self._pending = None
        self.gate.release()
        self.notify(reason)
        return ctx

    def turn_changed(self, ctx: TurnContext) -> TurnContext:
        """Drops any lifted card once the player may no longer act."""
        if self.can_do_action(ctx):
            return ctx
        if self.selected_card is not None:
            self.selected_card.inc_y(LIFT)
            self.selected_card = None
            self.hand.render()
        self.cursor = CURSOR_DEFAULT
        return ctx

    def expire_pending(self, ctx: TurnContext) -> TurnContext:
        if self.gate.expired(self.clock()):
            logger.warning('claim %s not acknowledged in time, releasing gate', self.pending_request)
            self._pending = None
            self.gate.release()
            self.notify(TIMEOUT_MESSAGE)
        return ctx
