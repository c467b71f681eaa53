"""Typed variants of a question's ``options_category`` blob.

One variant per question-type family, discriminated by ``kind``. Parsing
from the stored blob lives in ``formflow.logic.options_category``.
"""

from __future__ import annotations

from typing import List, Literal, Optional, Union

from pydantic import BaseModel, Field, model_validator


class NoOptions(BaseModel):
    kind: Literal["none"] = "none"

    @property
    def choices(self) -> List[str]:
        return []


class ChoiceOptions(BaseModel):
    kind: Literal["choice"] = "choice"
    choices: List[str] = Field(default_factory=list)


class MultiSelectOptions(BaseModel):
    kind: Literal["multi_select"] = "multi_select"
    choices: List[str] = Field(default_factory=list)
    min: int = Field(default=0, ge=0)
    max: Optional[int] = None

    @model_validator(mode="after")
    def bounds_are_ordered(self) -> "MultiSelectOptions":
        if self.max is not None and self.max < self.min:
            raise ValueError("multi_select max must be >= min")
        return self


class LinearScaleOptions(BaseModel):
    kind: Literal["linear_scale"] = "linear_scale"
    min: int
    max: int
    min_label: Optional[str] = None
    max_label: Optional[str] = None

    @model_validator(mode="after")
    def bounds_are_ordered(self) -> "LinearScaleOptions":
        if self.min > self.max:
            raise ValueError("linear_scale min must be <= max")
        return self

    @property
    def choices(self) -> List[str]:
        """Each scale point as text; index i is the value ``min + i``."""
        return [str(v) for v in range(self.min, self.max + 1)]


OptionsCategory = Union[NoOptions, ChoiceOptions, MultiSelectOptions, LinearScaleOptions]


__all__ = [
    "NoOptions",
    "ChoiceOptions",
    "MultiSelectOptions",
    "LinearScaleOptions",
    "OptionsCategory",
]
