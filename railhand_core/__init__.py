"""
Railhand core Python package.

Hand reconciliation, hand layout and the route-claim state machine of the
train-card board game client, split into small pure-logic modules:
- colors.py: palette and hand ordering
- card.py, reconcile.py, layout.py, hand.py: the player's hand
- context.py, routes.py, gate.py, claim.py: turn state and route claiming
- referee.py, table.py: in-process authoritative peer and wiring
"""
