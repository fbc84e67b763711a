from __future__ import annotations

# Facade module that re-exports Railhand core functionality.
# The Flask app, CLI and tests import from here; single-responsibility
# modules live under railhand_core/*.

from railhand_core.card import Card
from railhand_core.colors import (
    GRAY,
    PALETTE,
    WILDCARD,
    color_sort_key,
    empty_counter,
    sort_colors,
    validate_color,
)
from railhand_core.reconcile import ReconcileStats, reconcile
from railhand_core.layout import (
    GUTTER_BIG,
    GUTTER_SMALL,
    LEFT,
    TOP,
    has_cards_to_claim,
    layout_hand,
)
from railhand_core.hand import PlayerHand
from railhand_core.context import (
    ACTION_CLAIM_ROUTE,
    ACTION_START,
    PlayerInfo,
    TurnContext,
)
from railhand_core.routes import (
    Route,
    RouteMap,
    Segment,
    default_routes,
    load_routes,
    routes_from_json,
)
from railhand_core.gate import ActionGate
from railhand_core.claim import (
    CURSOR_DEFAULT,
    CURSOR_TARGET,
    LIFT,
    ClaimRequest,
    ClaimSession,
    SegmentRef,
)
from railhand_core.referee import (
    ClaimAck,
    deal_hand,
    end_turn,
    new_context,
    resolve_claim,
    standard_deck,
)
from railhand_core.table import LocalTable


def main() -> None:
    # CLI driver delegated to railhand_core.cli
    from railhand_core.cli import main as _main
    _main()


if __name__ == '__main__':
    main()
