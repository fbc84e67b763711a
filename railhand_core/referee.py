from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from .claim import ClaimRequest
from .colors import GRAY, PALETTE, WILDCARD, sort_colors
from .context import ACTION_CLAIM_ROUTE, ACTION_START, PlayerInfo, TurnContext
from .routes import RouteMap

logger = logging.getLogger(__name__)

COLOR_CARDS_PER_COLOR = 12
WILDCARD_CARDS = 14


@dataclass(frozen=True)
class ClaimAck:
    """The peer's answer to a claim request."""
    ok: bool
    context: TurnContext
    route_index: int
    segment_index: int
    player_index: int
    error: Optional[str] = None
    claim_id: int = 0


def standard_deck() -> List[str]:
    deck: List[str] = []
    for color in PALETTE:
        deck.extend([color] * (WILDCARD_CARDS if color == WILDCARD else COLOR_CARDS_PER_COLOR))
    return deck


def deal_hand(size: int, seed: Optional[int] = None) -> Tuple[str, ...]:
    """Deals a sorted hand from a shuffled standard deck."""
    deck = standard_deck()
    if not 0 <= size <= len(deck):
        raise ValueError(f'Hand size must be between 0 and {len(deck)}, got {size}')
    rng = random.Random(seed)
    rng.shuffle(deck)
    return tuple(sort_colors(deck[:size]))


def new_context(players: Sequence[PlayerInfo], cards: Sequence[str], me_index: int = 0) -> TurnContext:
    if not players:
        raise ValueError('At least one player is required')
    return TurnContext(
        my_turn=me_index == 0,
        players=tuple(players),
        me_index=me_index,
        current_player_index=0,
        cards=tuple(sort_colors(cards)),
    )


def _remove_one(cards: Sequence[str], color: str) -> Tuple[str, ...]:
    out = list(cards)
    out.remove(color)
    return tuple(out)


def _reject(ctx: TurnContext, request: ClaimRequest, error: str) -> ClaimAck:
    logger.info('referee rejected claim %s: %s', request, error)
    return ClaimAck(
        ok=False,
        context=ctx,
        route_index=request.route_index,
        segment_index=request.segment_index,
        player_index=ctx.current_player_index,
        error=error,
        claim_id=request.claim_id,
    )


def resolve_claim(ctx: TurnContext, routes: RouteMap, request: ClaimRequest) -> ClaimAck:
    """
    Authoritatively resolves one segment claim by the local player.

    On success one card of the chosen color and one coin are spent, the route
    is pinned for the rest of the turn and a gray route locks to the first
    non-wildcard color used. Completing the route ends the turn.
    The route map itself is not touched: markers are placed by whoever applies
    the acknowledgment.
    """
    route = routes.get_route(request.route_index)
    segment = routes.get_segment(request.route_index, request.segment_index)
    player = ctx.current_player
    card = request.selected_card_color

    if ctx.is_game_over():
        return _reject(ctx, request, 'Game is over')
    if not ctx.my_turn:
        return _reject(ctx, request, 'Not your turn')
    if segment.claimed:
        return _reject(ctx, request, 'Coin already placed!')
    if card not in ctx.cards:
        return _reject(ctx, request, f'No {card} card in hand')
    if player.coins < 1:
        return _reject(ctx, request, 'Not enough coins to claim route!')
    if ctx.selected_route_index >= 0 and ctx.selected_route_index != request.route_index:
        return _reject(ctx, request, 'Cannot claim multiple routes in one turn!')
    if card != WILDCARD:
        if route.color != GRAY and card != route.color:
            return _reject(ctx, request, f'Color mismatch {card} vs {route.color}')
        if route.color == GRAY and ctx.gray_route_color and card != ctx.gray_route_color:
            return _reject(ctx, request, 'Cannot mix colors in gray route')

    gray_color = ctx.gray_route_color
    if route.color == GRAY and card != WILDCARD and gray_color is None:
        gray_color = card

    players = list(ctx.players)
    players[ctx.current_player_index] = PlayerInfo(player.name, player.color, player.coins - 1)
    pins = ctx.action_count // 2 + 1
    next_ctx = ctx.replace(
        players=tuple(players),
        cards=_remove_one(ctx.cards, card),
        action_name=ACTION_CLAIM_ROUTE,
        action_count=pins * 2,
        selected_route_index=request.route_index,
        gray_route_color=gray_color,
    )

    if route.claimed_count() + 1 == len(route):
        next_ctx = end_turn(next_ctx)
        if next_ctx.players[ctx.current_player_index].coins == 0 or _all_claimed_after(routes, request):
            next_ctx = next_ctx.replace(game_over=True)
    logger.debug('referee accepted claim %s', request)
    return ClaimAck(
        ok=True,
        context=next_ctx,
        route_index=request.route_index,
        segment_index=request.segment_index,
        player_index=ctx.current_player_index,
        claim_id=request.claim_id,
    )


def end_turn(ctx: TurnContext) -> TurnContext:
    """Passes the turn to the next player and clears the per-turn claim state."""
    nxt = (ctx.current_player_index + 1) % len(ctx.players)
    return ctx.replace(
        current_player_index=nxt,
        my_turn=nxt == ctx.me_index,
        action_name=ACTION_START,
        action_count=0,
        selected_route_index=-1,
        gray_route_color=None,
    )


def _all_claimed_after(routes: RouteMap, request: ClaimRequest) -> bool:
    for idx, route in enumerate(routes.routes):
        remaining = len(route) - route.claimed_count()
        if idx == request.route_index:
            remaining -= 1
        if remaining > 0:
            return False
    return True
