from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from .card import Card
from .colors import empty_counter, sort_colors, validate_color
from .layout import ColorCounter, layout_hand
from .reconcile import ReconcileStats, reconcile

logger = logging.getLogger(__name__)

DEFAULT_LOCATION = 'playertrain'


class PlayerHand:
    """The local player's hand: an ordered deck of cards plus its color counts."""

    def __init__(self, location: str = DEFAULT_LOCATION) -> None:
        self.location = location
        self.deck: List[Card] = []
        self.counter: ColorCounter = empty_counter()

    def __len__(self) -> int:
        return len(self.deck)

    def __iter__(self):
        return iter(self.deck)

    def colors(self) -> List[str]:
        return [card.color for card in self.deck]

    def synchronize(self, card_colors: Iterable[str]) -> ReconcileStats:
        """Brings the hand in line with the authoritative card list and lays it out."""
        colors = sort_colors(validate_color(c) for c in card_colors)
        self.deck, stats = reconcile(self.deck, colors)
        logger.debug('hand %s synchronized: %s', self.location, stats)
        self.render()
        return stats

    def render(self) -> bool:
        rendered, self.counter = layout_hand(self.deck, self.location)
        return rendered

    def owns(self, card: Optional[Card]) -> bool:
        return card is not None and card.has_image() and card.location == self.location

    def card_at(self, index: int) -> Card:
        return self.deck[index]

    def cleanup(self) -> None:
        for card in self.deck:
            if card.has_image():
                card.destroy()
        self.deck = []
        self.counter = empty_counter()
