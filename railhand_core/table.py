from __future__ import annotations

import logging
import time
from collections import deque
from typing import Any, Callable, Deque, Dict, Iterable, List, Optional

from . import config
from .claim import ClaimRequest, ClaimSession, SegmentRef
from .colors import sort_colors, validate_color
from .context import PlayerInfo, TurnContext
from .gate import ActionGate
from .hand import PlayerHand
from .reconcile import ReconcileStats
from .referee import deal_hand, new_context, resolve_claim
from .routes import RouteMap, default_routes, load_routes

logger = logging.getLogger(__name__)


class LocalTable:
    """
    A single-player table wiring the hand, claim session and an in-process referee.

    Claims submitted by the session are queued in ``outbox`` and only answered
    when ``deliver_acks`` runs, which keeps the in-flight window observable.
    """

    def __init__(
        self,
        routes: Optional[RouteMap] = None,
        hand_size: int = config.HAND_SIZE,
        coins: int = config.STARTING_COINS,
        seed: Optional[int] = None,
        player_name: str = 'you',
        player_color: str = 'red',
        timeout: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if routes is None:
            routes = load_routes(config.ROUTES_PATH) if config.ROUTES_PATH else default_routes()
        self.routes = routes
        self.hand = PlayerHand()
        self.messages: List[str] = []
        self.outbox: Deque[ClaimRequest] = deque()
        if timeout is None:
            timeout = config.claim_timeout()
        gate = ActionGate(timeout=timeout if timeout and timeout > 0 else None)
        self.session = ClaimSession(
            self.hand,
            self.routes,
            submit=self.outbox.append,
            notify=self.messages.append,
            gate=gate,
            clock=clock,
        )
        players = [PlayerInfo(name=player_name, color=player_color, coins=coins)]
        self.context: TurnContext = new_context(players, deal_hand(hand_size, seed))
        self.sync()

    def sync(self, cards: Optional[Iterable[str]] = None) -> ReconcileStats:
        """Re-pushes the authoritative hand, optionally replacing it first."""
        if cards is not None:
            self.context = self.context.replace(cards=tuple(sort_colors(validate_color(c) for c in cards)))
        return self.hand.synchronize(self.context.cards)

    def activate_card(self, index: int) -> TurnContext:
        card = self.hand.card_at(index)
        self.context = self.session.card_activated(self.context, card)
        return self.context

    def hover_card(self, index: int, inside: bool = True) -> None:
        card = self.hand.card_at(index)
        if inside:
            self.session.card_hovered(self.context, card)
        else:
            self.session.card_unhovered(card)

    def activate_segment(self, route_index: int, segment_index: int) -> TurnContext:
        self.context = self.session.route_segment_activated(self.context, SegmentRef(route_index, segment_index))
        return self.context

    def deliver_acks(self) -> int:
        """Answers every queued claim through the referee. Returns how many were answered."""
        delivered = 0
        while self.outbox:
            request = self.outbox.popleft()
            ack = resolve_claim(self.context, self.routes, request)
            if ack.ok:
                self.context = self.session.claim_confirmed(
                    ack.context, ack.route_index, ack.segment_index, ack.player_index, claim_id=ack.claim_id
                )
            else:
                self.context = self.session.claim_rejected(
                    ack.context, ack.error or 'Claim rejected', claim_id=ack.claim_id
                )
            delivered += 1
        if delivered:
            logger.debug('delivered %d acknowledgment(s)', delivered)
        return delivered

    def apply_context(self, ctx: TurnContext) -> ReconcileStats:
        """Adopts an updated context pushed by the peer and re-synchronizes the hand."""
        self.context = self.session.turn_changed(ctx)
        return self.hand.synchronize(self.context.cards)

    def expire(self) -> TurnContext:
        self.context = self.session.expire_pending(self.context)
        return self.context

    def take_messages(self) -> List[str]:
        out = list(self.messages)
        self.messages.clear()
        return out

    def snapshot(self) -> Dict[str, Any]:
        selected = self.session.selected_card
        return {
            'context': self.context.to_json(),
            'hand': [
                {
                    'color': c.color,
                    'x': c.x,
                    'y': c.y,
                    'selected': c is selected,
                    'highlighted': c.highlighted,
                }
                for c in self.hand.deck
            ],
            'counter': dict(self.hand.counter),
            'cursor': self.session.cursor,
            'phase': self.session.phase,
            'submitting': self.session.gate.busy,
            'pending': self.session.pending_request.to_json() if self.session.pending_request else None,
            'routes': self.routes.to_json(),
        }
