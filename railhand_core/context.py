from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, Optional, Tuple

from .colors import PALETTE, validate_color

ACTION_START = 'start'
ACTION_CLAIM_ROUTE = 'claim-route'


def _strict_bool(value: Any, name: str) -> bool:
    if not isinstance(value, bool):
        raise ValueError(f'Malformed turn context: {name} must be a boolean, got {value!r}')
    return value


@dataclass(frozen=True)
class PlayerInfo:
    name: str
    color: str
    coins: int


@dataclass(frozen=True)
class TurnContext:
    """Turn and action state shared with the authoritative peer.

    Entry points take a context and hand back the (possibly) updated one; nothing
    mutates a context in place.
    """
    my_turn: bool
    players: Tuple[PlayerInfo, ...]
    me_index: int = 0
    current_player_index: int = 0
    game_over: bool = False
    action_name: str = ACTION_START
    action_count: int = 0
    selected_route_index: int = -1
    gray_route_color: Optional[str] = None
    cards: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def me(self) -> PlayerInfo:
        return self.players[self.me_index]

    @property
    def current_player(self) -> PlayerInfo:
        return self.players[self.current_player_index]

    def is_game_over(self) -> bool:
        return self.game_over

    def replace(self, **changes: Any) -> 'TurnContext':
        return replace(self, **changes)

    def with_action(self, name: str, count: int) -> 'TurnContext':
        return replace(self, action_name=name, action_count=count)

    def to_json(self) -> Dict[str, Any]:
        return {
            'myTurn': self.my_turn,
            'gameOver': self.game_over,
            'actionName': self.action_name,
            'actionCount': self.action_count,
            'selectedRouteIndex': self.selected_route_index,
            'grayRouteColor': self.gray_route_color,
            'currentPlayerIndex': self.current_player_index,
            'meIndex': self.me_index,
            'players': [{'name': p.name, 'color': p.color, 'coins': p.coins} for p in self.players],
            'cards': list(self.cards),
        }

    @classmethod
    def from_json(cls, obj: Dict[str, Any]) -> 'TurnContext':
        """Builds a context from its wire form. Raises ValueError on malformed input."""
        try:
            players = tuple(
                PlayerInfo(name=str(p['name']), color=str(p['color']), coins=int(p['coins']))
                for p in obj['players']
            )
            gray = obj.get('grayRouteColor')
            ctx = cls(
                my_turn=_strict_bool(obj['myTurn'], 'myTurn'),
                players=players,
                me_index=int(obj.get('meIndex', 0)),
                current_player_index=int(obj.get('currentPlayerIndex', 0)),
                game_over=_strict_bool(obj.get('gameOver', False), 'gameOver'),
                action_name=str(obj.get('actionName', ACTION_START)),
                action_count=int(obj.get('actionCount', 0)),
                selected_route_index=int(obj.get('selectedRouteIndex', -1)),
                gray_route_color=str(gray) if gray else None,
                cards=tuple(validate_color(str(c)) for c in obj.get('cards', [])),
            )
        except (KeyError, TypeError) as e:
            raise ValueError(f'Malformed turn context: {e}') from e
        if not ctx.players:
            raise ValueError('Malformed turn context: no players')
        for idx in (ctx.me_index, ctx.current_player_index):
            if not 0 <= idx < len(ctx.players):
                raise ValueError(f'Malformed turn context: player index {idx} out of range')
        if ctx.gray_route_color is not None and ctx.gray_route_color not in PALETTE:
            raise ValueError(f'Malformed turn context: gray route color {ctx.gray_route_color!r}')
        return ctx
