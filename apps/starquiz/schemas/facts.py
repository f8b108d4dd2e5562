from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Season(str, Enum):
    spring = "Spring"
    summer = "Summer"
    autumn = "Autumn"
    winter = "Winter"
    year_round = "Year-round"


CANONICAL_SEASONS: tuple[Season, ...] = (
    Season.spring,
    Season.summer,
    Season.autumn,
    Season.winter,
)


class Hemisphere(str, Enum):
    north = "North"
    south = "South"


class BodyKind(str, Enum):
    star = "Star"
    planet = "Planet"
    moon = "Moon"
    dwarf_planet = "Dwarf planet"
    small_body = "Small body"


class PlanetType(str, Enum):
    terrestrial = "Terrestrial"
    gas = "Gas giant"
    ice = "Ice giant"


class EclipseType(str, Enum):
    solar = "Solar eclipse"
    lunar = "Lunar eclipse"


class _Fact(BaseModel):
    model_config = ConfigDict(frozen=True)


class ConstellationFact(_Fact):
    """One constellation from the catalog, after normalization."""

    name_local: str = Field(min_length=1)
    name_canonical: str = Field(min_length=1)
    hemisphere: Hemisphere = Hemisphere.north
    season: Optional[Season] = None
    notable_stars: tuple[str, ...] = ()

    @property
    def display_name(self) -> str:
        if self.name_local == self.name_canonical:
            return self.name_canonical
        return f"{self.name_canonical} ({self.name_local})"


class SolarBodyFact(_Fact):
    """A sun, planet, moon or smaller body from the solar-system file."""

    name_local: str = Field(min_length=1)
    name_canonical: str = Field(min_length=1)
    kind: BodyKind
    orbit_order: Optional[int] = Field(default=None, ge=1)
    planet_type: Optional[PlanetType] = None
    parent_body: Optional[str] = None


class EclipseFact(_Fact):
    type: EclipseType
    body_order: tuple[str, str, str]
    description: str = ""

    @field_validator("body_order")
    @classmethod
    def _distinct_bodies(cls, value: tuple[str, str, str]) -> tuple[str, str, str]:
        if len(set(value)) != 3:
            raise ValueError("body_order must name three distinct bodies")
        return value


class AssetRef(_Fact):
    """Result of resolving a name against an image directory."""

    url: str
    credit: str = ""


class ChartAsset(_Fact):
    key: str
    display_name: str
    image_path: str
    credit: str = ""


class PhotoAsset(_Fact):
    key: str
    display_name: str
    image_path: str
    credit: str = ""
    kind: BodyKind = BodyKind.planet


__all__ = [
    "AssetRef",
    "BodyKind",
    "CANONICAL_SEASONS",
    "ChartAsset",
    "ConstellationFact",
    "EclipseFact",
    "EclipseType",
    "Hemisphere",
    "PhotoAsset",
    "PlanetType",
    "Season",
    "SolarBodyFact",
]
