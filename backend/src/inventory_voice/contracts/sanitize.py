"""Tri-state result of the input guard."""

from typing import Literal, Union

from pydantic import BaseModel, ConfigDict


class Clean(BaseModel):
    """Input passed every check."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["clean"] = "clean"
    text: str


class Suspicious(BaseModel):
    """Input is processed, but flagged for audit and constrained downstream."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["suspicious"] = "suspicious"
    reason: str
    text: str


class Rejected(BaseModel):
    """Input must not be processed."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["rejected"] = "rejected"
    reason: str


SanitizeResult = Union[Clean, Suspicious, Rejected]
