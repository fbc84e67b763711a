from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Iterator, List, Optional, Sequence

from .colors import GRAY, ROUTE_COLORS


@dataclass
class Segment:
    """One claimable unit of a route. ``coin_color`` is set once a marker is placed."""
    color: str
    coin_color: Optional[str] = None

    @property
    def claimed(self) -> bool:
        return self.coin_color is not None


@dataclass
class Route:
    segments: List[Segment] = field(default_factory=list)

    @classmethod
    def of(cls, color: str, length: int) -> 'Route':
        if color not in ROUTE_COLORS:
            raise ValueError(f'Unknown route color: {color!r}')
        if length <= 0:
            raise ValueError(f'Route length must be positive, got {length}')
        return cls([Segment(color) for _ in range(length)])

    @property
    def color(self) -> str:
        return self.segments[0].color

    def __len__(self) -> int:
        return len(self.segments)

    def __getitem__(self, index: int) -> Segment:
        return self.segments[index]

    def __iter__(self) -> Iterator[Segment]:
        return iter(self.segments)

    def claimed_count(self) -> int:
        return sum(1 for s in self.segments if s.claimed)

    def is_claimed(self) -> bool:
        return self.claimed_count() == len(self.segments)


class RouteMap:
    """Read access to the board's routes plus coin placement."""

    def __init__(self, routes: Sequence[Route]) -> None:
        self.routes: List[Route] = list(routes)

    def __len__(self) -> int:
        return len(self.routes)

    def get_route(self, route_index: int) -> Route:
        if not 0 <= route_index < len(self.routes):
            raise IndexError(f'Unknown route index: {route_index}')
        return self.routes[route_index]

    def get_segment(self, route_index: int, segment_index: int) -> Segment:
        route = self.get_route(route_index)
        if not 0 <= segment_index < len(route):
            raise IndexError(f'Unknown segment {segment_index} on route {route_index}')
        return route[segment_index]

    def place_coin(self, coin_color: str, route_index: int, segment_index: int) -> None:
        self.get_segment(route_index, segment_index).coin_color = coin_color

    def to_json(self) -> List[dict]:
        return [
            {
                'color': r.color,
                'length': len(r),
                'coins': [s.coin_color for s in r.segments],
            }
            for r in self.routes
        ]


def routes_from_json(obj: Any) -> RouteMap:
    """Builds a route map from a list of {"color": ..., "length": ...} entries."""
    if not isinstance(obj, list):
        raise ValueError('Route map must be a JSON list')
    routes: List[Route] = []
    for entry in obj:
        try:
            routes.append(Route.of(str(entry['color']), int(entry['length'])))
        except (KeyError, TypeError) as e:
            raise ValueError(f'Bad route entry {entry!r}: {e}') from e
    return RouteMap(routes)


def load_routes(path: str) -> RouteMap:
    with open(path, 'r', encoding='utf-8') as f:
        return routes_from_json(json.load(f))


def default_routes() -> RouteMap:
    """A small demo map covering colored and gray routes of several lengths."""
    layout = [
        ('red', 3),
        ('blue', 2),
        (GRAY, 2),
        ('green', 4),
        (GRAY, 4),
        ('yellow', 1),
        ('black', 3),
        ('white', 2),
        ('orange', 5),
        ('purple', 3),
        (GRAY, 1),
        (GRAY, 6),
    ]
    return RouteMap([Route.of(color, length) for color, length in layout])
