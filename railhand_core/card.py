from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .colors import validate_color


@dataclass(eq=False)
class Card:
    """A train card in a hand.

    ``present`` tracks whether the card currently has a renderable form; a card
    that was destroyed keeps its color but is no longer present. Cards compare
    by identity, two cards of the same color are interchangeable only through
    the reconciler.
    """
    color: str
    present: bool = False
    interactive: bool = False
    x: float = 0
    y: float = 0
    location: Optional[str] = None
    highlighted: bool = False

    @classmethod
    def create(cls, color: str) -> 'Card':
        return cls(color=validate_color(color), present=True, interactive=True)

    def has_image(self) -> bool:
        return self.present

    def destroy(self) -> None:
        self.present = False
        self.interactive = False
        self.highlighted = False

    def set_position(self, x: float, y: float) -> 'Card':
        self.x = x
        self.y = y
        return self

    def set_location(self, location: Optional[str]) -> 'Card':
        self.location = location
        return self

    def inc_y(self, dy: float) -> 'Card':
        self.y += dy
        return self

    def highlight(self) -> None:
        self.highlighted = True

    def unhighlight(self) -> None:
        self.highlighted = False
