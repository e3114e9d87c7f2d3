# FILE: teletext/services/telemetry.py
"""
Telemetry and metrics collection (rotated JSONL)

- Stores summary-only events to disk (append-only JSONL, one file per UTC day).
- Keeps a small in-memory tail and per-event counters for /health.

Config keys (via teletext.config.get_settings()):
- TELEMETRY_ENABLED: bool
- LOGS_DIR: str (base logs dir)
"""
from __future__ import annotations

import json
import logging
from collections import defaultdict, deque
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Deque, Dict

from teletext.config import get_settings

logger = logging.getLogger(__name__)

# Small in-memory tail (debug convenience, not the source of truth)
_MAX_IN_MEMORY_EVENTS = 200
_recent_events: Deque[Dict[str, Any]] = deque(maxlen=_MAX_IN_MEMORY_EVENTS)
_counters: Dict[str, int] = defaultdict(int)


def _telemetry_dir() -> Path:
    d = Path(get_settings().logs_dir) / "telemetry"
    d.mkdir(parents=True, exist_ok=True)
    return d


def init_telemetry() -> None:
    """Initialize telemetry (create dirs)."""
    settings = get_settings()
    if not settings.telemetry_enabled:
        logger.info("Telemetry disabled")
        return
    telemetry_dir = _telemetry_dir()
    logger.info("Telemetry initialized (dir=%s)", str(telemetry_dir))


def record_event(event: str, **fields: Any) -> None:
    """Record a telemetry event (summary-only fields, never page content)."""
    if not get_settings().telemetry_enabled:
        return

    now_utc = datetime.now(timezone.utc)
    payload: Dict[str, Any] = {"ts": now_utc.isoformat(), "event": event, **fields}

    _recent_events.append(payload)
    _counters[event] += 1

    path = _telemetry_dir() / f"events-{now_utc.date().isoformat()}.jsonl"
    try:
        with open(path, "a", encoding="utf-8") as f:
            f.write(json.dumps(payload, ensure_ascii=False, default=str) + "\n")
    except OSError as e:
        # Never break a page request on telemetry failure
        logger.warning("Failed to write telemetry event to %s: %s", str(path), e)


def get_telemetry_summary() -> Dict[str, Any]:
    """Lightweight summary (does NOT scan JSONL files)."""
    return {
        "enabled": get_settings().telemetry_enabled,
        "total_events_in_memory": len(_recent_events),
        "counters_in_memory": dict(_counters),
        "recent_events": list(_recent_events)[-10:],
    }


def reset_telemetry() -> None:
    _recent_events.clear()
    _counters.clear()
