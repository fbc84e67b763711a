from __future__ import annotations

import argparse
import json
from typing import Any, Dict, List, Optional

from . import config
from .routes import RouteMap, default_routes, load_routes
from .table import LocalTable


def pretty_hand(table: LocalTable) -> str:
    """One line per card: index, color and a marker for the lifted card."""
    lines: List[str] = []
    for i, card in enumerate(table.hand.deck):
        mark = ' ^' if card is table.session.selected_card else ''
        lines.append(f"  [{i:2}] {card.color}{mark}")
    counts = ', '.join(f"{c}:{n}" for c, n in table.hand.counter.items() if n)
    lines.append(f"  counts: {counts or 'none'}")
    return "\n".join(lines)


def pretty_routes(routes: RouteMap) -> str:
    lines: List[str] = []
    for i, route in enumerate(routes.routes):
        cells = ' '.join(s.coin_color[0].upper() if s.coin_color else '.' for s in route.segments)
        lines.append(f"  route {i:2} {route.color:<7} len {len(route)}  {cells}")
    return "\n".join(lines)


def _status(table: LocalTable) -> str:
    ctx = table.context
    return (
        f"coins {ctx.me.coins} | action {ctx.action_name}#{ctx.action_count} | "
        f"pinned route {ctx.selected_route_index} | gray lock {ctx.gray_route_color or '-'}"
    )


def _flush(table: LocalTable) -> None:
    for msg in table.take_messages():
        print('!', msg)


def run_event(table: LocalTable, event: Dict[str, Any]) -> None:
    """Applies one scripted event: {"card": i}, {"segment": [r, s]} or {"ack": true}."""
    if 'card' in event:
        table.activate_card(int(event['card']))
    elif 'segment' in event:
        route_index, segment_index = event['segment']
        table.activate_segment(int(route_index), int(segment_index))
    elif event.get('ack'):
        table.deliver_acks()
    elif 'sync' in event:
        table.sync(event['sync'])
    else:
        raise ValueError(f'Unknown event: {event!r}')


def run_script(table: LocalTable, events: List[Dict[str, Any]]) -> None:
    for event in events:
        run_event(table, event)
        _flush(table)
    print(pretty_hand(table))
    print(pretty_routes(table.routes))
    print(_status(table))


def play(table: LocalTable) -> None:
    print('Commands: c <card>, s <route> <segment>, q')
    while not table.context.is_game_over():
        table.expire()
        _flush(table)
        print(pretty_routes(table.routes))
        print(pretty_hand(table))
        print(_status(table))
        text = input('> ').strip()
        parts = text.split()
        if not parts:
            continue
        try:
            if parts[0] == 'q':
                return
            if parts[0] == 'c' and len(parts) == 2:
                table.activate_card(int(parts[1]))
            elif parts[0] == 's' and len(parts) == 3:
                table.activate_segment(int(parts[1]), int(parts[2]))
                table.deliver_acks()
            else:
                print('Could not parse. Try again.')
        except (ValueError, IndexError) as e:
            print(f'error: {e}')
        _flush(table)
    print('Game over.')


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(description='Railhand route-claim engine')
    parser.add_argument('--seed', type=int, default=None, help='RNG seed for the dealt hand')
    parser.add_argument('--hand-size', type=int, default=config.HAND_SIZE, help='Number of cards dealt')
    parser.add_argument('--coins', type=int, default=config.STARTING_COINS, help='Starting coin balance')
    parser.add_argument('--routes', default=config.ROUTES_PATH, help='JSON route map path')
    parser.add_argument('--script', default=None, help='Replay a JSON list of events instead of playing')
    parser.add_argument('--debug', action='store_true', help='Verbose logging')
    args = parser.parse_args(argv)

    config.configure_logging(args.debug or None)
    routes = load_routes(args.routes) if args.routes else default_routes()
    table = LocalTable(routes=routes, hand_size=args.hand_size, coins=args.coins, seed=args.seed)

    if args.script:
        with open(args.script, 'r', encoding='utf-8') as f:
            events = json.load(f)
        run_script(table, events)
        return
    play(table)


if __name__ == '__main__':
    main()
