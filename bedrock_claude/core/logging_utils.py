"""Structured JSON-line logging for generation and stream events."""

from __future__ import annotations

import json
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional

LOGGER_NAME = "bedrock_claude"


def bedrock_log_context(model_id: str, client: Any = None) -> Dict[str, Any]:
    """Fields identifying which Bedrock model and region a log line belongs to."""
    meta = getattr(client, "meta", None)
    region = getattr(meta, "region_name", None)
    return {"model_id": model_id, "region": region if isinstance(region, str) else None}


def log_event(
    event: str,
    payload: Dict[str, Any] | None = None,
    *,
    context: Optional[Mapping[str, Any]] = None,
) -> None:
    """Emit one JSON log line to stderr, keeping stdout free for streamed text.

    Args:
        event (str): Event name, e.g. ``llm_generate_start``.
        payload (Dict[str, Any] | None): Event-specific fields.
        context (Optional[Mapping[str, Any]]): Model/region fields; ``None`` values are dropped.
    """
    data: Dict[str, Any] = {"logger": LOGGER_NAME, "event": event}
    if context:
        data.update({k: v for k, v in context.items() if v is not None})
    if payload:
        data.update(payload)
    data["ts"] = datetime.now(timezone.utc).isoformat()
    print(json.dumps(data, ensure_ascii=False, default=str), file=sys.stderr)
