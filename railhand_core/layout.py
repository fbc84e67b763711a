from __future__ import annotations

from typing import Dict, Sequence, Tuple

from .card import Card
from .colors import GRAY, WILDCARD, empty_counter

LEFT = 20
TOP = 940
GUTTER_SMALL = 20  # between cards of the same color
GUTTER_BIG = 70  # between color blocks

ColorCounter = Dict[str, int]


def layout_hand(deck: Sequence[Card], location: str) -> Tuple[bool, ColorCounter]:
    """
    Positions every card in a single row and recounts colors.

    Returns (rendered, counter). An empty deck renders nothing and yields a
    zeroed counter.
    """
    counter = empty_counter()
    if not deck:
        return False, counter
    prev_color = None
    x = LEFT
    for card in deck:
        if prev_color is not None:
            x += GUTTER_SMALL if prev_color == card.color else GUTTER_BIG
        card.set_position(x, TOP)
        card.set_location(location)
        prev_color = card.color
        counter[card.color] += 1
    return True, counter


def has_cards_to_claim(route, counter: ColorCounter) -> bool:
    """Checks whether the counted hand can cover every segment of a route."""
    route_color = route.color
    wild = counter.get(WILDCARD, 0)
    if route_color == GRAY:
        best = max((n for color, n in counter.items() if color != WILDCARD), default=0)
        return best + wild >= len(route)
    return counter.get(route_color, 0) + wild >= len(route)
