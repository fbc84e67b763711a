from __future__ import annotations

import logging
import os
from typing import Optional


def _env_flag(name: str, default: str = '0') -> bool:
    return os.getenv(name, default).lower() in ('1', 'true', 'yes', 'on')


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == '':
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f'{name} must be a number, got {raw!r}') from None


def _env_int(name: str, default: int) -> int:
    return int(_env_float(name, default))


# Seconds to wait for a claim acknowledgment before the gate is released. 0 disables.
CLAIM_TIMEOUT = _env_float('RAILHAND_CLAIM_TIMEOUT', 10.0)
HAND_SIZE = _env_int('RAILHAND_HAND_SIZE', 12)
STARTING_COINS = _env_int('RAILHAND_COINS', 45)
ROUTES_PATH: Optional[str] = os.getenv('RAILHAND_ROUTES') or None
DEBUG = _env_flag('RAILHAND_DEBUG')


def claim_timeout() -> Optional[float]:
    return CLAIM_TIMEOUT if CLAIM_TIMEOUT > 0 else None


def configure_logging(debug: Optional[bool] = None) -> None:
    """Sets up root logging once; RAILHAND_DEBUG switches to DEBUG level."""
    if debug is None:
        debug = DEBUG
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )
