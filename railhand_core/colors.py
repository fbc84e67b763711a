from __future__ import annotations

from typing import Dict, Iterable, List, Tuple

# Card palette, in counter order. The wildcard is always last.
PALETTE: Tuple[str, ...] = (
    'black',
    'white',
    'red',
    'orange',
    'purple',
    'yellow',
    'green',
    'blue',
    'rainbow',
)
WILDCARD = 'rainbow'
GRAY = 'gray'  # route color only, never a card
ROUTE_COLORS: Tuple[str, ...] = PALETTE[:-1] + (GRAY,)


def validate_color(color: str) -> str:
    """Returns the color if it is a card color, otherwise raises ValueError."""
    if color not in PALETTE:
        raise ValueError(f'Unknown card color: {color!r}')
    return color


def color_sort_key(color: str) -> Tuple[bool, str]:
    """Sort key for hand order: by name, with the wildcard after everything else."""
    return (color == WILDCARD, color)


def sort_colors(colors: Iterable[str]) -> List[str]:
    return sorted(colors, key=color_sort_key)


def empty_counter() -> Dict[str, int]:
    """A zeroed per-color counter in palette order."""
    return {color: 0 for color in PALETTE}
