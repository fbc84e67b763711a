from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence, Tuple

from .card import Card


@dataclass(frozen=True)
class ReconcileStats:
    """Counts of the operations performed by a reconcile pass."""
    kept: int = 0
    created: int = 0
    destroyed: int = 0

    @property
    def changed(self) -> bool:
        return bool(self.created or self.destroyed)


def reconcile(deck: Sequence[Card], colors: Sequence[str]) -> Tuple[List[Card], ReconcileStats]:
    """
    Aligns the current deck with an authoritative, already sorted color list.

    Cards are matched by position: the card at index i survives only when it is
    still present and has the same color as colors[i]. Any other slot is
    replaced by a freshly created card. Surplus cards past the new length are
    destroyed. Two cards of the same color are interchangeable, so no identity
    beyond "this slot's color did not change" is preserved.
    """
    old_len = len(deck)
    new_len = len(colors)
    result: List[Card] = []
    kept = created = destroyed = 0

    for i in range(max(old_len, new_len)):
        if i >= new_len:
            deck[i].destroy()
            destroyed += 1
            continue
        color = colors[i]
        if i < old_len:
            old = deck[i]
            if old.color == color and old.has_image():
                result.append(old)
                kept += 1
                continue
            if old.has_image():
                old.destroy()
                destroyed += 1
        result.append(Card.create(color))
        created += 1

    return result, ReconcileStats(kept=kept, created=created, destroyed=destroyed)
