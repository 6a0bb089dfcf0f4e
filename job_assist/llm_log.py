"""
Audit trail for model traffic.

Every prompt sent and every raw reply received is appended to its own log
file, regardless of whether extraction or validation later succeeds, so the
exact exchange behind a fallback can be inspected afterwards.
"""

from __future__ import annotations

import datetime
import logging
from typing import Optional

import config

logger = logging.getLogger(__name__)

_SEP = "=" * 80
_DASH = "-" * 80


def log_request(feature: str, model: str, prompt: str, system: Optional[str] = None) -> None:
    """Append the system and user messages sent for `feature` to llm_requests.log."""
    parts = _header(feature, model)
    if system:
        parts += [_DASH, "[SYSTEM]", system]
    parts += [_DASH, "[USER]", prompt, _SEP]
    _append(config.LLM_REQUEST_LOG_FILE, "\n".join(parts) + "\n", "LLM request")


def log_response(feature: str, model: str, raw_response: str) -> None:
    """Append the complete raw reply for `feature` to llm_responses.log."""
    parts = _header(feature, model) + [_DASH, raw_response, _SEP]
    _append(config.LLM_LOG_FILE, "\n".join(parts) + "\n", "LLM")


def _header(feature: str, model: str) -> list[str]:
    ts = datetime.datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    return [
        f"\n{_SEP}",
        f"Timestamp : {ts}",
        f"Feature   : {feature}",
        f"Model     : {model}",
    ]


def _append(path, entry: str, label: str) -> None:
    try:
        with open(path, "a", encoding="utf-8") as fh:
            fh.write(entry)
    except OSError as exc:
        logger.warning("Could not write %s log: %s", label, exc)
