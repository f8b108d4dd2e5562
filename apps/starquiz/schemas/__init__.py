"""Pydantic schemas shared across the app."""

from .facts import (
    CANONICAL_SEASONS,
    AssetRef,
    BodyKind,
    ChartAsset,
    ConstellationFact,
    EclipseFact,
    EclipseType,
    Hemisphere,
    PhotoAsset,
    PlanetType,
    Season,
    SolarBodyFact,
)
from .quiz import ChatRequest, GuideResponse, PoolSizes, Question, QuizCategory, QuizResponse

__all__ = [
    "AssetRef",
    "BodyKind",
    "CANONICAL_SEASONS",
    "ChartAsset",
    "ChatRequest",
    "ConstellationFact",
    "EclipseFact",
    "EclipseType",
    "GuideResponse",
    "Hemisphere",
    "PhotoAsset",
    "PlanetType",
    "PoolSizes",
    "Question",
    "QuizCategory",
    "QuizResponse",
    "Season",
    "SolarBodyFact",
]
