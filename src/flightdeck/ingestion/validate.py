"""Packet validation.

Validation never raises: every outcome is returned as :class:`Ok` or
:class:`Err` so the caller decides how to surface a rejected frame.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from pydantic import ValidationError

from flightdeck._redact import summarize_for_log
from flightdeck.models.telemetry import TelemetryPacket

T = TypeVar("T")

# Upper bound on how many field errors are spelled out in a reason.
_MAX_REASONS = 5


@dataclass(frozen=True)
class PacketValidationError:
    """Why a raw payload was rejected.

    ``raw`` is the offending input exactly as received (decoded JSON, or the
    original text when decoding failed).
    """

    raw: Any
    reason: str

    def __str__(self) -> str:
        return self.reason


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Err:
    error: PacketValidationError

    @property
    def ok(self) -> bool:
        return False


ValidationResult = Ok[TelemetryPacket] | Err


def _format_loc(loc: tuple[int | str, ...]) -> str:
    return ".".join(str(part) for part in loc) or "<root>"


def _describe(exc: ValidationError) -> str:
    errors = exc.errors(include_url=False)
    parts = [f"{_format_loc(err['loc'])}: {err['msg']}" for err in errors[:_MAX_REASONS]]
    if len(errors) > _MAX_REASONS:
        parts.append(f"(+{len(errors) - _MAX_REASONS} more)")
    return "; ".join(parts)


def validate_packet(raw: Any) -> ValidationResult:
    """Validate a decoded payload against the telemetry schema.

    Checks presence and numeric type of every required field and that
    ``phase`` is one of the flight phases. The packet is returned as parsed;
    no unit conversion or clamping is applied.
    """
    if isinstance(raw, TelemetryPacket):
        return Ok(raw)
    if not isinstance(raw, dict):
        return Err(PacketValidationError(raw=raw, reason=f"expected a JSON object, got {type(raw).__name__}"))
    try:
        packet = TelemetryPacket.model_validate(raw)
    except ValidationError as exc:
        return Err(PacketValidationError(raw=raw, reason=_describe(exc)))
    return Ok(packet)


def parse_frame(text: str | bytes) -> ValidationResult:
    """Decode one websocket text frame and validate it."""
    try:
        decoded = json.loads(text)
    except (ValueError, RecursionError) as exc:
        # ValueError covers JSONDecodeError and UnicodeDecodeError; deeply
        # nested arrays exhaust the decoder's recursion limit.
        return Err(
            PacketValidationError(
                raw=text,
                reason=f"malformed JSON ({exc}): {summarize_for_log(text, max_string=64)!s}",
            )
        )
    return validate_packet(decoded)
