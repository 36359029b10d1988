"""Outcome of resolving a spoken name against a catalog."""

from __future__ import annotations

from typing import Any, Generic, Literal, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")


class Found(BaseModel, Generic[T]):
    """Exactly one entity matches."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    kind: Literal["found"] = "found"
    entity: T


class Ambiguous(BaseModel, Generic[T]):
    """Several entities match; the user has to pick one."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    kind: Literal["ambiguous"] = "ambiguous"
    candidates: list[T]
    original_query: str


class NotFound(BaseModel):
    """Nothing matches; the caller may offer to create the entity."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["not_found"] = "not_found"
    original_query: str


class NeedsConfirmation(BaseModel, Generic[T]):
    """One plausible fuzzy match that the user should confirm."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    kind: Literal["needs_confirmation"] = "needs_confirmation"
    candidate: T
    similarity: float = Field(ge=0.0, le=1.0)
    original_query: str


ResolutionResult = Union[Found[Any], Ambiguous[Any], NotFound, NeedsConfirmation[Any]]
