"""
The validate-and-fallback pipeline wrapped around every AI feature.

    Building → Calling → Extracting → Validating → Succeeded
                  │           │            │
                  └───────────┴────────────┴──→ FallbackSubstituted

`run()` always hands back a usable value: either the model's reply after
extraction and validation, or a copy of the feature's fallback. The only
exception it lets through is PreconditionError, raised by a prompt builder
when the records it needs are missing. That is a caller bug and happens
before any model call is made.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional, Protocol

from . import llm_log
from .completion import ServiceUnavailableError
from .extractor import ExtractionError, extract
from .shapes import Shape, ValidationFailure, validate

logger = logging.getLogger(__name__)


class PreconditionError(ValueError):
    """A prompt builder was called without the records it requires."""
    pass


class CompletionClient(Protocol):
    def complete(self, prompt: str, model: str, system: Optional[str] = None) -> str:
        ...


class Status(str, Enum):
    SUCCEEDED = "succeeded"
    MALFORMED_OUTPUT = "malformed_output"
    SERVICE_UNAVAILABLE = "service_unavailable"


@dataclass(frozen=True)
class PipelineResult:
    """Outcome of one pipeline invocation. `value` is always shape-valid."""

    value: Any
    status: Status = Status.SUCCEEDED
    reason: str = ""

    @property
    def fallback(self) -> bool:
        return self.status is not Status.SUCCEEDED

    def to_dict(self) -> dict:
        return {
            "data": self.value,
            "status": self.status.value,
            "fallback": self.fallback,
        }


def run(
    shape: Shape,
    build_prompt: Callable[[], str],
    fallback: Any,
    *,
    client: CompletionClient,
    model: str,
    system: Optional[str] = None,
    feature: Optional[str] = None,
) -> PipelineResult:
    """
    Build the prompt, call the model, extract and validate its reply.

    Raises PreconditionError from `build_prompt`; never raises for model or
    network faults.
    """
    feature = feature or shape.name

    # ── Building ──────────────────────────────────────────────
    prompt = build_prompt()

    # ── Calling ───────────────────────────────────────────────
    logger.info("AI %s starting – model=%s", feature, model)
    llm_log.log_request(feature, model, prompt, system)
    try:
        raw = client.complete(prompt, model, system=system)
    except ServiceUnavailableError as exc:
        logger.warning("AI %s: completion service unavailable – %s", feature, exc)
        return _substitute(fallback, Status.SERVICE_UNAVAILABLE, str(exc))
    llm_log.log_response(feature, model, raw)

    # ── Extracting ────────────────────────────────────────────
    try:
        candidate = extract(raw)
    except ExtractionError as exc:
        logger.warning(
            "AI %s: JSON extraction failed at stage %s – %s | preview: %s",
            feature, exc.stage, exc, exc.raw_preview,
        )
        return _substitute(fallback, Status.MALFORMED_OUTPUT, f"{exc.stage}: {exc}")

    # ── Validating ────────────────────────────────────────────
    try:
        value = validate(candidate, shape)
    except ValidationFailure as exc:
        logger.warning("AI %s: validation failed – %s", feature, "; ".join(exc.errors))
        return _substitute(fallback, Status.MALFORMED_OUTPUT, str(exc))

    logger.info("AI %s completed", feature)
    return PipelineResult(value=value, status=Status.SUCCEEDED)


def _substitute(fallback: Any, status: Status, reason: str) -> PipelineResult:
    return PipelineResult(value=copy.deepcopy(fallback), status=status, reason=reason)
