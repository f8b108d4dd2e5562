from __future__ import annotations

import copy
import os
import random
import socket
from typing import Any

import pytest

# Keep settings from reading a developer's local .env files during tests.
os.environ.setdefault("APP_ENV", "test")


class NetworkBlockedError(RuntimeError):
    pass


def _blocked(*_args: Any, **_kwargs: Any) -> Any:
    raise NetworkBlockedError(
        "Network access is disabled during tests. "
        "Mark the test with @pytest.mark.integration/@pytest.mark.network or set ALLOW_NETWORK=1."
    )


@pytest.fixture(autouse=True)
def _disable_network(monkeypatch: pytest.MonkeyPatch, request: pytest.FixtureRequest) -> None:
    """Prevent accidental outbound network calls in unit tests."""

    if os.getenv("ALLOW_NETWORK") == "1":
        return

    if request.node.get_closest_marker("integration") or request.node.get_closest_marker("network"):
        return

    monkeypatch.setattr(socket, "create_connection", _blocked)
    monkeypatch.setattr(socket, "getaddrinfo", _blocked)


CONSTELLATIONS_RAW: dict[str, Any] = {
    "constellations": [
        {
            "name_en": "Orion",
            "name_ko": "오리온자리",
            "hemisphere": "E",
            "best_season_northern": "winter",
            "notable_stars": [{"name": "Betelgeuse", "name_ko": "베텔게우스"}, {"name": "Rigel"}],
        },
        {
            "name_en": "Lyra",
            "name_ko": "거문고자리",
            "hemisphere": "N",
            "best_season_northern": "summer",
            "notable_stars": [{"name": "Vega", "name_ko": "베가"}],
        },
        {
            "name_en": "Scorpius",
            "name_ko": "전갈자리",
            "hemisphere": "S",
            "best_season_northern": "Summer",
            "stars": ["Antares"],
        },
        {
            "name_en": "Cancer",
            "name_ko": "게자리",
            "hemisphere": "N",
            "best_season_northern": "Summer",
        },
        {
            "name_en": "Crux",
            "name_ko": "남십자자리",
            "hemisphere": "southern sky",
            "season": "spring",
            "notable_stars": [{"name": "Acrux"}],
        },
        {
            "name_en": "Cygnus",
            "name_ko": "백조자리",
            "hemisphere": "N",
            "best_season_northern": "summer",
            "notable_stars": [{"name": "Deneb"}],
        },
    ]
}

SOLAR_RAW: dict[str, Any] = {
    "sun": {"name_en": "Sun", "name_ko": "태양"},
    "planets": [
        {"name_en": "Neptune", "name_ko": "해왕성", "type": "얼음형", "orbit_order": 8},
        {"name_en": "Mercury", "name_ko": "수성", "type": "지구형", "orbit_order": 1},
        {"name_en": "Earth", "name_ko": "지구", "type": "지구형", "orbit_order": 3},
        {"name_en": "Jupiter", "name_ko": "목성", "type": "가스형", "orbit_order": 5},
        {"name_en": "Saturn", "name_ko": "토성", "type": "가스형", "orbit_order": 6},
        {"name_ko": "화성"},
        {"name_en": "Pluto", "name_ko": "명왕성", "type": "왜소행성"},
    ],
    "moons": [
        {"name_en": "Moon", "name_ko": "달", "parent": "Earth"},
        {"name_en": "Titan", "name_ko": "타이탄", "parent": "토성"},
    ],
    "eclipses": [
        {"type": "일식", "order": ["Sun", "Moon", "Earth"], "desc": "The Moon hides the Sun."},
        {"type": "lunar", "order": ["Sun", "Earth", "Moon"], "desc": "Earth's shadow."},
    ],
}


@pytest.fixture
def constellations_raw() -> dict[str, Any]:
    return copy.deepcopy(CONSTELLATIONS_RAW)


@pytest.fixture
def solar_raw() -> dict[str, Any]:
    return copy.deepcopy(SOLAR_RAW)


@pytest.fixture
def store(constellations_raw, solar_raw):
    from starquiz.schemas.facts import AssetRef
    from starquiz.services.assets import StaticAssetResolver
    from starquiz.services.fact_store import FactStore

    charts = StaticAssetResolver(
        {
            name: AssetRef(url=f"/public/charts/{name.lower()}.svg", credit="IAU")
            for name in ("Orion", "Lyra", "Scorpius")
        }
    )
    photos = StaticAssetResolver(
        {
            name: AssetRef(url=f"/public/planets/{name.lower()}.jpg", credit="NASA")
            for name in ("Sun", "Earth", "Jupiter", "Saturn", "Moon", "Titan")
        }
    )
    return FactStore.from_raw(
        constellations_raw, solar_raw, chart_resolver=charts, photo_resolver=photos
    )


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)
