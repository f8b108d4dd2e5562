"""In-memory fact store built once from the constellation and solar-system files.

Source files drift in shape (array vs wrapper object, flat vs nested star lists,
English vs Korean labels). Normalization here is deterministic so loading the same
bytes twice yields identical pools.
"""

from __future__ import annotations

import json
import logging
import re
import unicodedata
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Optional

from pydantic import ValidationError

from starquiz.core.exceptions import DataLoadError
from starquiz.schemas.facts import (
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
from starquiz.services.assets import AssetResolver, slugify

logger = logging.getLogger(__name__)

SEASON_LABELS: dict[str, Season] = {
    "spring": Season.spring,
    "summer": Season.summer,
    "autumn": Season.autumn,
    "fall": Season.autumn,
    "winter": Season.winter,
    "year-round": Season.year_round,
    "year round": Season.year_round,
    "all year": Season.year_round,
    "봄": Season.spring,
    "여름": Season.summer,
    "가을": Season.autumn,
    "겨울": Season.winter,
    "연중": Season.year_round,
}

HEMISPHERE_CODES: dict[str, Hemisphere] = {
    "n": Hemisphere.north,
    "e": Hemisphere.north,  # equatorial constellations are asked as northern
    "s": Hemisphere.south,
    "north": Hemisphere.north,
    "south": Hemisphere.south,
    "북반구": Hemisphere.north,
    "남반구": Hemisphere.south,
}

PLANET_TYPE_LABELS: dict[str, PlanetType] = {
    "terrestrial": PlanetType.terrestrial,
    "rocky": PlanetType.terrestrial,
    "지구형": PlanetType.terrestrial,
    "gas": PlanetType.gas,
    "gas giant": PlanetType.gas,
    "가스형": PlanetType.gas,
    "ice": PlanetType.ice,
    "ice giant": PlanetType.ice,
    "얼음형": PlanetType.ice,
}

DWARF_LABELS = frozenset({"dwarf", "dwarf planet", "왜소행성"})


# Local names for stars whose catalog records carry no ``name_ko``. Keys are
# ``star_key`` output, so Bayer designations written with Greek letters
# ("α Lyrae") match their spelled-out form ("alpha lyrae").
STAR_NAME_LOCAL: dict[str, str] = {
    "betelgeuse": "베텔게우스",
    "rigel": "리겔",
    "bellatrix": "벨라트릭스",
    "sirius": "시리우스",
    "procyon": "프로키온",
    "vega": "베가",
    "deneb": "데네브",
    "altair": "알타이르",
    "arcturus": "아크투루스",
    "spica": "스피카",
    "capella": "카펠라",
    "castor": "카스토르",
    "pollux": "폴룩스",
    "aldebaran": "알데바란",
    "algol": "알골",
    "mirfak": "미르팍",
    "almach": "알마크",
    "alpheratz": "알페라츠",
    "algenib": "알게니브",
    "enif": "애니프",
    "dubhe": "두베",
    "merak": "메라크",
    "phecda": "페크다",
    "megrez": "메그레즈",
    "alioth": "알리오트",
    "mizar": "미자르",
    "alcor": "알코르",
    "alkaid": "알카이드",
    "regulus": "레굴루스",
    "denebola": "데네볼라",
    "antares": "안타레스",
    "mira": "미라",
    "fomalhaut": "포말하우트",
    "polaris": "폴라리스",
    "sadr": "사드르",
    "albireo": "알비레오",
    "dabih": "다비흐",
    "canopus": "카노푸스",
    "alpha orionis": "베텔게우스",
    "beta orionis": "리겔",
    "alpha canis majoris": "시리우스",
    "alpha canis minoris": "프로키온",
    "alpha lyrae": "베가",
    "alpha cygni": "데네브",
    "alpha aquilae": "알타이르",
    "alpha bootis": "아크투루스",
    "alpha virginis": "스피카",
    "alpha aurigae": "카펠라",
    "alpha tauri": "알데바란",
    "alpha leonis": "레굴루스",
    "alpha scorpii": "안타레스",
    "omicron ceti": "미라",
    "alpha piscis austrini": "포말하우트",
    "alpha ursae minoris": "폴라리스",
    "alpha carinae": "카노푸스",
}

GREEK_LETTERS: dict[str, str] = {
    "α": "alpha",
    "β": "beta",
    "γ": "gamma",
    "δ": "delta",
    "ε": "epsilon",
    "ζ": "zeta",
    "η": "eta",
    "θ": "theta",
    "ι": "iota",
    "κ": "kappa",
    "λ": "lambda",
    "μ": "mu",
    "ν": "nu",
    "ξ": "xi",
    "ο": "omicron",
    "π": "pi",
    "ρ": "rho",
    "σ": "sigma",
    "ς": "sigma",
    "τ": "tau",
    "υ": "upsilon",
    "φ": "phi",
    "χ": "chi",
    "ψ": "psi",
    "ω": "omega",
}


@dataclass(frozen=True)
class PlanetInfo:
    name_local: str
    orbit_order: int
    planet_type: PlanetType


# Fallback for planet records that omit their order or type.
PLANET_LOOKUP: dict[str, PlanetInfo] = {
    "Mercury": PlanetInfo("수성", 1, PlanetType.terrestrial),
    "Venus": PlanetInfo("금성", 2, PlanetType.terrestrial),
    "Earth": PlanetInfo("지구", 3, PlanetType.terrestrial),
    "Mars": PlanetInfo("화성", 4, PlanetType.terrestrial),
    "Jupiter": PlanetInfo("목성", 5, PlanetType.gas),
    "Saturn": PlanetInfo("토성", 6, PlanetType.gas),
    "Uranus": PlanetInfo("천왕성", 7, PlanetType.ice),
    "Neptune": PlanetInfo("해왕성", 8, PlanetType.ice),
}
_PLANET_BY_LOCAL = {info.name_local: name for name, info in PLANET_LOOKUP.items()}


@dataclass(frozen=True)
class ManualCorrection:
    names: frozenset[str]
    field: str
    value: Any
    reason: str


# Known-wrong source entries. Matched against canonical (case-insensitive) and local names.
MANUAL_CORRECTIONS: tuple[ManualCorrection, ...] = (
    ManualCorrection(
        names=frozenset({"cancer", "게자리"}),
        field="season",
        value=Season.winter,
        reason="Korea Astronomy and Space Science Institute lists Cancer as a winter constellation",
    ),
)


def _text(value: Any) -> str:
    if value is None:
        return ""
    return re.sub(r"\s+", " ", str(value)).strip()


def _first(record: dict[str, Any], *keys: str) -> str:
    for key in keys:
        value = _text(record.get(key))
        if value:
            return value
    return ""


def _records(raw: Any, wrapper_key: str) -> list[dict[str, Any]]:
    if isinstance(raw, dict):
        raw = raw.get(wrapper_key)
    if not isinstance(raw, list):
        return []
    return [item for item in raw if isinstance(item, dict)]


def normalize_season(label: Any) -> Optional[Season]:
    key = _text(label).lower().replace("_", "-")
    if not key:
        return None
    if key in SEASON_LABELS:
        return SEASON_LABELS[key]
    try:
        return Season(_text(label))
    except ValueError:
        return None


def normalize_hemisphere(code: Any) -> Hemisphere:
    key = _text(code).lower()
    if not key:
        return Hemisphere.north
    if key in HEMISPHERE_CODES:
        return HEMISPHERE_CODES[key]
    if "south" in key or "남" in key:
        return Hemisphere.south
    return Hemisphere.north


def _strip_parens(name: str) -> str:
    return _text(re.sub(r"\(.*?\)", " ", name))


def star_key(name: Any) -> str:
    """Lookup key for :data:`STAR_NAME_LOCAL`: "α Boötis" -> "alpha bootis"."""
    text = unicodedata.normalize("NFD", _text(name))
    text = "".join(ch for ch in text if not unicodedata.combining(ch)).lower()
    text = re.sub(r"\(.*?\)", " ", text)
    text = re.sub(r"[.,]", " ", text)
    text = "".join(GREEK_LETTERS.get(ch, ch) for ch in text)
    return _text(text)


def local_star_name(*names: Any) -> str:
    """First table hit among ``names``; empty when none is known."""
    for name in names:
        key = star_key(name)
        if not key:
            continue
        if key in STAR_NAME_LOCAL:
            return STAR_NAME_LOCAL[key]
        if "mira" in key.split():
            return STAR_NAME_LOCAL["mira"]
    return ""


def clean_star_name(star: Any) -> str:
    """Star display name, rendered as "Vega (베가)" when a local name is known.

    The local name comes from the record's ``name_ko`` and otherwise from
    :data:`STAR_NAME_LOCAL`. Flat strings that already carry a parenthetical
    are kept as they are.
    """
    if not isinstance(star, dict):
        text = _text(star)
        if not text or "(" in text:
            return text
        local = local_star_name(text)
        return f"{text} ({local})" if local else text
    base = _strip_parens(_first(star, "name", "proper", "designation", "bayer"))
    local = _strip_parens(_first(star, "name_ko", "name_local")) or local_star_name(
        *(star.get(key) for key in ("name", "proper", "designation", "bayer", "flamsteed"))
    )
    if base and local and base != local:
        return f"{base} ({local})"
    return base or local


def extract_notable_stars(record: dict[str, Any]) -> tuple[str, ...]:
    raw = record.get("notable_stars")
    if not isinstance(raw, list):
        raw = record.get("stars")
    if not isinstance(raw, list):
        return ()
    names: list[str] = []
    for star in raw:
        name = clean_star_name(star)
        if name and name not in names:
            names.append(name)
    return tuple(names)


def apply_manual_corrections(fact_fields: dict[str, Any]) -> dict[str, Any]:
    names = {
        fact_fields["name_canonical"].lower(),
        fact_fields["name_local"].lower(),
    }
    for correction in MANUAL_CORRECTIONS:
        if names & correction.names:
            fact_fields[correction.field] = correction.value
    return fact_fields


def load_constellations(raw: Any) -> tuple[ConstellationFact, ...]:
    """Normalize a constellation catalog (array or ``{"constellations": [...]}``)."""
    facts: list[ConstellationFact] = []
    seen: set[str] = set()
    for record in _records(raw, "constellations"):
        canonical = _first(record, "name_en", "english", "name")
        local = _first(record, "name_ko", "korean", "name_local")
        if not canonical and not local:
            continue
        canonical = canonical or local
        local = local or canonical
        if canonical.lower() in seen:
            continue
        fields = {
            "name_canonical": canonical,
            "name_local": local,
            "hemisphere": normalize_hemisphere(record.get("hemisphere")),
            "season": normalize_season(record.get("season"))
            or normalize_season(record.get("best_season_northern")),
            "notable_stars": extract_notable_stars(record),
        }
        facts.append(ConstellationFact(**apply_manual_corrections(fields)))
        seen.add(canonical.lower())
    return tuple(facts)


def _planet_type(label: Any) -> Optional[PlanetType]:
    key = _text(label).lower()
    if key in PLANET_TYPE_LABELS:
        return PLANET_TYPE_LABELS[key]
    try:
        return PlanetType(_text(label))
    except ValueError:
        return None


def _canonical_planet(name: str) -> str:
    if name in _PLANET_BY_LOCAL:
        return _PLANET_BY_LOCAL[name]
    titled = name[:1].upper() + name[1:].lower() if name else name
    return titled if titled in PLANET_LOOKUP else name


def _body_names(record: dict[str, Any]) -> tuple[str, str]:
    canonical = _first(record, "name_en", "name", "english")
    local = _first(record, "name_ko", "korean", "name_local")
    if not canonical and local:
        canonical = _PLANET_BY_LOCAL.get(local, local)
    return canonical, local or canonical


def _load_planet(record: dict[str, Any]) -> Optional[SolarBodyFact]:
    canonical, local = _body_names(record)
    if not canonical:
        return None
    canonical = _canonical_planet(canonical)
    type_label = _text(record.get("type")).lower()
    if type_label in DWARF_LABELS:
        return SolarBodyFact(
            name_canonical=canonical, name_local=local, kind=BodyKind.dwarf_planet
        )
    info = PLANET_LOOKUP.get(canonical)
    order = record.get("orbit_order")
    if not isinstance(order, int) or isinstance(order, bool) or order < 1:
        order = info.orbit_order if info else None
    planet_type = _planet_type(record.get("type")) or (info.planet_type if info else None)
    return SolarBodyFact(
        name_canonical=canonical,
        name_local=local,
        kind=BodyKind.planet,
        orbit_order=order,
        planet_type=planet_type,
    )


def _load_moon(record: dict[str, Any]) -> Optional[SolarBodyFact]:
    canonical, local = _body_names(record)
    parent = _first(record, "parent", "planet", "parent_en", "parent_ko")
    if not canonical or not parent:
        return None
    return SolarBodyFact(
        name_canonical=canonical,
        name_local=local,
        kind=BodyKind.moon,
        parent_body=_canonical_planet(parent),
    )


def _eclipse_type(label: Any) -> Optional[EclipseType]:
    key = _text(label).lower()
    if "solar" in key or "일식" in key:
        return EclipseType.solar
    if "lunar" in key or "월식" in key:
        return EclipseType.lunar
    return None


def _load_eclipse(record: dict[str, Any]) -> Optional[EclipseFact]:
    kind = _eclipse_type(record.get("type"))
    order = record.get("order") or record.get("body_order")
    if kind is None or not isinstance(order, list) or len(order) != 3:
        return None
    try:
        return EclipseFact(
            type=kind,
            body_order=tuple(_text(body) for body in order),
            description=_first(record, "desc", "description"),
        )
    except ValidationError:
        return None


def load_solar_system(
    raw: Any,
) -> tuple[Optional[SolarBodyFact], tuple[SolarBodyFact, ...], tuple[EclipseFact, ...]]:
    """Normalize a solar-system file into (sun, bodies, eclipses)."""
    if not isinstance(raw, dict):
        return None, (), ()

    sun: Optional[SolarBodyFact] = None
    if isinstance(raw.get("sun"), dict):
        canonical, local = _body_names(raw["sun"])
        sun = SolarBodyFact(
            name_canonical=canonical or "Sun", name_local=local or "태양", kind=BodyKind.star
        )

    bodies: list[SolarBodyFact] = []
    for record in _records(raw, "planets"):
        planet = _load_planet(record)
        if planet is not None:
            bodies.append(planet)
    for record in _records(raw, "dwarf_planets"):
        canonical, local = _body_names(record)
        if canonical:
            bodies.append(
                SolarBodyFact(
                    name_canonical=canonical, name_local=local, kind=BodyKind.dwarf_planet
                )
            )
    for record in _records(raw, "moons"):
        moon = _load_moon(record)
        if moon is not None:
            bodies.append(moon)

    eclipses = tuple(
        e for e in (_load_eclipse(record) for record in _records(raw, "eclipses")) if e
    )
    return sun, tuple(bodies), eclipses


def read_json(path: Path) -> Any:
    try:
        return json.loads(Path(path).read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise DataLoadError(f"Data file not found: {path}", details=str(path)) from exc
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise DataLoadError(f"Data file unreadable: {path}: {exc}", details=str(path)) from exc


def _read_json_or_none(path: Optional[Path], label: str) -> Any:
    if path is None:
        return None
    try:
        return read_json(path)
    except DataLoadError as exc:
        logger.warning("%s load failed: %s", label, exc.message)
        return None


@dataclass(frozen=True)
class FactStore:
    """Immutable facts plus the pools each question category draws from."""

    constellations: tuple[ConstellationFact, ...] = ()
    bodies: tuple[SolarBodyFact, ...] = ()
    eclipses: tuple[EclipseFact, ...] = ()
    sun: Optional[SolarBodyFact] = None
    chart_assets: tuple[ChartAsset, ...] = ()
    photo_assets: tuple[PhotoAsset, ...] = ()
    # Pools below are derived in build().
    season_pool: tuple[ConstellationFact, ...] = ()
    star_pool: tuple[ConstellationFact, ...] = ()
    hemisphere_pool: tuple[ConstellationFact, ...] = ()
    planets: tuple[SolarBodyFact, ...] = ()
    orbit_pool: tuple[SolarBodyFact, ...] = ()
    moons: tuple[SolarBodyFact, ...] = ()

    @classmethod
    def build(
        cls,
        *,
        constellations: Iterable[ConstellationFact] = (),
        bodies: Iterable[SolarBodyFact] = (),
        eclipses: Iterable[EclipseFact] = (),
        sun: Optional[SolarBodyFact] = None,
        chart_resolver: Optional[AssetResolver] = None,
        photo_resolver: Optional[AssetResolver] = None,
    ) -> "FactStore":
        constellations = tuple(constellations)
        bodies = tuple(bodies)
        planets = tuple(
            sorted(
                (b for b in bodies if b.kind == BodyKind.planet),
                key=lambda b: (b.orbit_order is None, b.orbit_order or 0, b.name_canonical),
            )
        )
        return cls(
            constellations=constellations,
            bodies=bodies,
            eclipses=tuple(eclipses),
            sun=sun,
            chart_assets=_chart_assets(constellations, chart_resolver),
            photo_assets=_photo_assets(((sun,) if sun else ()) + bodies, photo_resolver),
            season_pool=tuple(
                c
                for c in constellations
                if c.season is not None and c.hemisphere != Hemisphere.south
            ),
            star_pool=tuple(c for c in constellations if c.notable_stars),
            hemisphere_pool=tuple(c for c in constellations if c.hemisphere is not None),
            planets=planets,
            orbit_pool=tuple(p for p in planets if p.orbit_order is not None),
            moons=tuple(b for b in bodies if b.kind == BodyKind.moon),
        )

    @classmethod
    def from_raw(
        cls,
        constellations_raw: Any,
        solar_raw: Any,
        *,
        chart_resolver: Optional[AssetResolver] = None,
        photo_resolver: Optional[AssetResolver] = None,
    ) -> "FactStore":
        sun, bodies, eclipses = load_solar_system(solar_raw)
        return cls.build(
            constellations=load_constellations(constellations_raw),
            bodies=bodies,
            eclipses=eclipses,
            sun=sun,
            chart_resolver=chart_resolver,
            photo_resolver=photo_resolver,
        )

    @classmethod
    def from_paths(
        cls,
        constellations_path: Optional[Path],
        solar_system_path: Optional[Path],
        *,
        chart_resolver: Optional[AssetResolver] = None,
        photo_resolver: Optional[AssetResolver] = None,
    ) -> "FactStore":
        """Load both files; a missing or broken file leaves its pools empty."""
        store = cls.from_raw(
            _read_json_or_none(constellations_path, "constellations"),
            _read_json_or_none(solar_system_path, "solar system"),
            chart_resolver=chart_resolver,
            photo_resolver=photo_resolver,
        )
        logger.info("constellations loaded: %d", len(store.constellations))
        logger.info(
            "solar loaded: planets=%d moons=%d eclipses=%d sun=%s",
            len(store.planets),
            len(store.moons),
            len(store.eclipses),
            store.sun is not None,
        )
        return store

    def pool_sizes(self) -> dict[str, Any]:
        return {
            "constellations": len(self.constellations),
            "season": len(self.season_pool),
            "hemisphere": len(self.hemisphere_pool),
            "star": len(self.star_pool),
            "planets": len(self.planets),
            "orbit_order": len(self.orbit_pool),
            "moons": len(self.moons),
            "eclipses": len(self.eclipses),
            "sun": self.sun is not None,
            "charts": len(self.chart_assets),
            "photos": len(self.photo_assets),
        }


def _chart_assets(
    constellations: tuple[ConstellationFact, ...], resolver: Optional[AssetResolver]
) -> tuple[ChartAsset, ...]:
    if resolver is None:
        return ()
    assets: list[ChartAsset] = []
    for fact in constellations:
        ref = resolver.resolve(fact.name_canonical)
        if ref is None:
            continue
        assets.append(
            ChartAsset(
                key=slugify(fact.name_canonical),
                display_name=fact.name_canonical,
                image_path=ref.url,
                credit=ref.credit,
            )
        )
    return tuple(assets)


def _photo_assets(
    bodies: tuple[SolarBodyFact, ...], resolver: Optional[AssetResolver]
) -> tuple[PhotoAsset, ...]:
    if resolver is None:
        return ()
    assets: list[PhotoAsset] = []
    for body in bodies:
        ref = resolver.resolve(body.name_canonical)
        if ref is None:
            continue
        assets.append(
            PhotoAsset(
                key=slugify(body.name_canonical),
                display_name=body.name_canonical,
                image_path=ref.url,
                credit=ref.credit,
                kind=body.kind,
            )
        )
    return tuple(assets)


__all__ = [
    "FactStore",
    "MANUAL_CORRECTIONS",
    "PLANET_LOOKUP",
    "apply_manual_corrections",
    "clean_star_name",
    "extract_notable_stars",
    "load_constellations",
    "load_solar_system",
    "local_star_name",
    "normalize_hemisphere",
    "normalize_season",
    "read_json",
    "star_key",
]
