"""
chronicle.config — YAML Configuration Loader
=============================================

Reads ``config.yaml`` for the tuning knobs of the contribution core
(throttle window, streak lookback, stale-journey threshold, retry
cadence).  Connection settings are **not** here: ``DATABASE_URL`` comes
from the environment (see :mod:`chronicle.database.engine`).

Usage::

    from chronicle.config import load_config

    cfg = load_config()                 # reads ./config.yaml by default
    print(cfg.rate_limit_max_entries)   # 10
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path

import yaml


@dataclass(frozen=True, slots=True)
class ChronicleConfig:
    """Immutable configuration loaded from ``config.yaml``.

    Every key is optional; the defaults below are the production values.
    """

    # Contribution throttle (open-mode, non-owner contributors)
    rate_limit_max_entries: int = 10
    rate_limit_window_minutes: int = 60

    # Badge engine day-set streak
    badge_streak_lookback_days: int = 365
    badge_streak_entry_limit: int = 1000

    # Stale journey reminder
    stale_after_days: int = 7

    # Asynchronous stats retry after a failed recomputation
    stats_retry_attempts: int = 3
    stats_retry_delay_seconds: float = 5.0

    # Notification dispatcher drain cadence
    notification_drain_seconds: float = 1.0


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def load_config(path: str | Path = "config.yaml") -> ChronicleConfig:
    """Read *path* and return a :class:`ChronicleConfig` instance.

    Unknown keys are ignored.  Values are coerced to the type of the
    matching dataclass default.

    Raises
    ------
    FileNotFoundError
        If the YAML file doesn't exist.
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Configuration file not found: {config_path.resolve()}\n"
            "Hint: copy config.yaml.example → config.yaml and edit it."
        )

    with open(config_path, encoding="utf-8") as fh:
        raw: dict = yaml.safe_load(fh) or {}

    defaults = ChronicleConfig()
    values = {}
    for f in fields(ChronicleConfig):
        if raw.get(f.name) is not None:
            cast = type(getattr(defaults, f.name))
            values[f.name] = cast(raw[f.name])
    return ChronicleConfig(**values)
