from __future__ import annotations

from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class QuizCategory(str, Enum):
    season = "season"
    hemisphere = "hemisphere"
    star = "star"
    image = "image"
    planet_type = "planet_type"
    orbit_order = "orbit_order"
    inner_outer = "inner_outer"
    moon = "moon"
    sun = "sun"
    eclipse = "eclipse"
    photo = "photo"
    lunar = "lunar"


class Question(BaseModel):
    """A single multiple-choice question as returned to clients."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    category: QuizCategory
    prompt: str = Field(min_length=1)
    choices: list[str] = Field(min_length=2, max_length=4)
    correct_index: int = Field(alias="correctIndex", ge=0)
    explanation: str = ""
    image: Optional[str] = None
    credit: Optional[str] = None

    @model_validator(mode="after")
    def _check_choices(self) -> "Question":
        if len(set(self.choices)) != len(self.choices):
            raise ValueError("choices must be unique")
        if self.correct_index >= len(self.choices):
            raise ValueError("correct_index out of range")
        return self

    @property
    def answer(self) -> str:
        return self.choices[self.correct_index]


class ChatRequest(BaseModel):
    mode: Optional[str] = None
    message: Optional[str] = None


class QuizResponse(BaseModel):
    type: Literal["quiz"] = "quiz"
    data: Question


class GuideResponse(BaseModel):
    type: Literal["guide", "rule"]
    data: str


class PoolSizes(BaseModel):
    constellations: int
    season: int
    hemisphere: int
    star: int
    planets: int
    orbit_order: int
    moons: int
    eclipses: int
    sun: bool
    charts: int
    photos: int


__all__ = [
    "ChatRequest",
    "GuideResponse",
    "PoolSizes",
    "Question",
    "QuizCategory",
    "QuizResponse",
]
