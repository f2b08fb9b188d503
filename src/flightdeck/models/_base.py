"""Base model and numeric types for telemetry payloads.

Every telemetry model inherits from :class:`FlightDeckBaseModel` which is
frozen and ignores unknown keys, so a validated packet is an immutable
value once created.

Numeric fields use :data:`FiniteFloat`: strict (no ``"1.0"`` string or
``True`` coercion) and finite (NaN and infinity are rejected). Integers are
accepted for any float field. Timestamps use :data:`EpochMillis`, a strict
integer.
"""

from __future__ import annotations

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field

FiniteFloat = Annotated[float, Field(strict=True, allow_inf_nan=False)]
"""A finite JSON number; ints are accepted, strings and booleans are not."""

EpochMillis = Annotated[int, Field(strict=True)]
"""Whole milliseconds since the Unix epoch; fractional numbers are rejected."""


class FlightDeckBaseModel(BaseModel):
    """Base for telemetry models."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
    )
