from __future__ import annotations

import logging
import os
import threading
import time
import uuid
from typing import Any, Dict, Optional, Tuple

from flask import Flask, jsonify, request

from game import LocalTable, TurnContext, routes_from_json
from railhand_core import config

logger = logging.getLogger(__name__)

app = Flask(__name__)

# In-memory tables keyed by id. The lock serializes request threads onto a table.
_tables: Dict[str, LocalTable] = {}
_tables_lock = threading.Lock()
# Clock handed to new tables; tests swap it for a controllable one.
_clock = time.monotonic


def _body() -> Dict[str, Any]:
    body = request.get_json(force=True, silent=True)
    return body if isinstance(body, dict) else {}


def _lookup(body: Dict[str, Any]) -> Tuple[Optional[LocalTable], Any]:
    table_id = body.get("tableId")
    table = _tables.get(str(table_id)) if table_id else None
    if table is None:
        return None, (jsonify({"ok": False, "error": "unknown table"}), 404)
    return table, None


def _table_json(table_id: str, table: LocalTable) -> Dict[str, Any]:
    return {
        "ok": True,
        "tableId": table_id,
        "state": table.snapshot(),
        "messages": table.take_messages(),
    }


def _bad_request(e: Exception) -> Any:
    return jsonify({"ok": False, "error": str(e)}), 400


@app.get("/")
def index() -> Any:
    return jsonify({"ok": True, "service": "railhand", "tables": len(_tables)})


@app.post("/api/new")
def api_new() -> Any:
    body = _body()
    try:
        routes = routes_from_json(body["routes"]) if "routes" in body else None
        seed = body.get("seed", None)
        table = LocalTable(
            routes=routes,
            hand_size=int(body.get("handSize", config.HAND_SIZE)),
            coins=int(body.get("coins", config.STARTING_COINS)),
            seed=int(seed) if seed is not None else None,
            player_name=str(body.get("name", "you")),
            player_color=str(body.get("color", "red")),
            clock=_clock,
        )
    except (ValueError, TypeError) as e:
        return _bad_request(e)
    table_id = uuid.uuid4().hex
    with _tables_lock:
        _tables[table_id] = table
    logger.info("table %s created", table_id)
    return jsonify(_table_json(table_id, table))


@app.post("/api/state")
def api_state() -> Any:
    body = _body()
    table, err = _lookup(body)
    if err:
        return err
    with _tables_lock:
        return jsonify(_table_json(body["tableId"], table))


@app.post("/api/sync")
def api_sync() -> Any:
    body = _body()
    table, err = _lookup(body)
    if err:
        return err
    cards = body.get("cards", None)
    with _tables_lock:
        try:
            if cards is not None and not isinstance(cards, list):
                raise ValueError("cards must be a list")
            stats = table.sync(cards)
        except ValueError as e:
            return _bad_request(e)
        out = _table_json(body["tableId"], table)
    out["reconcile"] = {"kept": stats.kept, "created": stats.created, "destroyed": stats.destroyed}
    return jsonify(out)


@app.post("/api/context")
def api_context() -> Any:
    body = _body()
    table, err = _lookup(body)
    if err:
        return err
    ctx_in = body.get("context")
    if not isinstance(ctx_in, dict):
        return jsonify({"ok": False, "error": "context required"}), 400
    with _tables_lock:
        try:
            table.apply_context(TurnContext.from_json(ctx_in))
        except ValueError as e:
            return _bad_request(e)
        return jsonify(_table_json(body["tableId"], table))


@app.post("/api/card")
def api_card() -> Any:
    body = _body()
    table, err = _lookup(body)
    if err:
        return err
    with _tables_lock:
        try:
            index = int(body["index"])
            hover = body.get("hover", None)
            if hover is None:
                table.activate_card(index)
            else:
                table.hover_card(index, inside=bool(hover))
        except (KeyError, ValueError, TypeError, IndexError) as e:
            return _bad_request(e)
        return jsonify(_table_json(body["tableId"], table))


@app.post("/api/segment")
def api_segment() -> Any:
    body = _body()
    table, err = _lookup(body)
    if err:
        return err
    with _tables_lock:
        try:
            table.activate_segment(int(body["routeIndex"]), int(body["index"]))
            if not body.get("defer", False):
                table.deliver_acks()
        except (KeyError, ValueError, TypeError, IndexError) as e:
            return _bad_request(e)
        return jsonify(_table_json(body["tableId"], table))


@app.post("/api/ack")
def api_ack() -> Any:
    body = _body()
    table, err = _lookup(body)
    if err:
        return err
    with _tables_lock:
        delivered = table.deliver_acks()
        table.expire()
        out = _table_json(body["tableId"], table)
    out["delivered"] = delivered
    return jsonify(out)


# Entrypoint for "python app.py"
if __name__ == "__main__":
    config.configure_logging()
    debug = os.getenv("FLASK_DEBUG", os.getenv("DEBUG", "0")).lower() in ("1", "true", "yes", "on")
    app.run(host="0.0.0.0", port=int(os.getenv("PORT", "5000")), debug=debug)
