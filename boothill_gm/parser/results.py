"""Decoder results.

Every decoder returns one of three outcomes instead of raising:

    Valid(value)                      — decoded as sent
    Defaulted(value, substitutions)   — decoded, some fields replaced by defaults
    Invalid(reason)                   — nothing usable; caller drops the payload
"""

from __future__ import annotations

from typing import Any, Generic, Literal, TypeVar, Union

from pydantic import BaseModel, ConfigDict

from boothill_gm.errors import ParseError

T = TypeVar("T")


class Substitution(BaseModel):
    """One field that was replaced by its default during decoding."""

    model_config = ConfigDict(frozen=True)

    field: str
    reason: str
    value: Any = None


class Valid(BaseModel, Generic[T]):
    model_config = ConfigDict(frozen=True)

    status: Literal["valid"] = "valid"
    value: T

    @property
    def ok(self) -> bool:
        return True

    def unwrap(self) -> T:
        return self.value


class Defaulted(BaseModel, Generic[T]):
    model_config = ConfigDict(frozen=True)

    status: Literal["defaulted"] = "defaulted"
    value: T
    substitutions: tuple[Substitution, ...]

    @property
    def ok(self) -> bool:
        return True

    def unwrap(self) -> T:
        return self.value


class Invalid(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: Literal["invalid"] = "invalid"
    reason: str

    @property
    def ok(self) -> bool:
        return False

    def unwrap(self):
        raise ParseError(self.reason)


DecodeResult = Union[Valid[T], Defaulted[T], Invalid]


def settle(value: T, substitutions: list[Substitution]) -> Valid[T] | Defaulted[T]:
    """Wrap a decoded value as Valid, or Defaulted if anything was substituted."""
    if substitutions:
        return Defaulted(value=value, substitutions=tuple(substitutions))
    return Valid(value=value)
