from __future__ import annotations

import json
import logging

import pytest
from starquiz.core.exceptions import DataLoadError
from starquiz.core.settings import Settings
from starquiz.schemas.facts import BodyKind, EclipseType, Hemisphere, PlanetType, Season
from starquiz.services.fact_store import (
    FactStore,
    clean_star_name,
    load_constellations,
    load_solar_system,
    local_star_name,
    normalize_hemisphere,
    normalize_season,
    read_json,
    star_key,
)


def _by_name(facts):
    return {f.name_canonical: f for f in facts}


@pytest.mark.parametrize(
    ("label", "expected"),
    [
        ("spring", Season.spring),
        ("Fall", Season.autumn),
        ("AUTUMN", Season.autumn),
        ("year-round", Season.year_round),
        ("Year_Round", Season.year_round),
        ("겨울", Season.winter),
        ("monsoon", None),
        (None, None),
    ],
)
def test_normalize_season(label, expected):
    assert normalize_season(label) == expected


@pytest.mark.parametrize(
    ("code", "expected"),
    [
        ("N", Hemisphere.north),
        ("S", Hemisphere.south),
        ("E", Hemisphere.north),
        ("Southern sky", Hemisphere.south),
        ("남반구", Hemisphere.south),
        ("", Hemisphere.north),
        (None, Hemisphere.north),
    ],
)
def test_normalize_hemisphere(code, expected):
    assert normalize_hemisphere(code) == expected


def test_clean_star_name_handles_records_and_strings():
    assert clean_star_name({"name": "Vega", "name_ko": "베가"}) == "Vega (베가)"
    assert clean_star_name({"name_ko": "베가"}) == "베가"
    assert clean_star_name({"proper": "Alcyone (Pleiades)"}) == "Alcyone"
    assert clean_star_name("  Antares ") == "Antares (안타레스)"
    assert clean_star_name("Achernar") == "Achernar"
    assert clean_star_name("Betelgeuse (베텔게우스)") == "Betelgeuse (베텔게우스)"


@pytest.mark.parametrize(
    ("name", "key"),
    [
        ("α Lyrae", "alpha lyrae"),
        ("α Boötis", "alpha bootis"),
        ("Alpha Orionis (Betelgeuse)", "alpha orionis"),
        ("  Vega. ", "vega"),
    ],
)
def test_star_key(name, key):
    assert star_key(name) == key


def test_local_star_name_uses_first_known_candidate():
    assert local_star_name(None, "Unknown", "β Orionis") == "리겔"
    assert local_star_name("Mira Ceti") == "미라"
    assert local_star_name("Mirach") == ""


def test_star_records_without_local_name_are_localized():
    assert clean_star_name({"name": "Rigel"}) == "Rigel (리겔)"
    assert clean_star_name({"designation": "α Lyrae"}) == "α Lyrae (베가)"
    assert clean_star_name({"bayer": "ο Ceti"}) == "ο Ceti (미라)"
    assert clean_star_name({"name": "Acrux"}) == "Acrux"


def test_flat_star_lists_are_localized():
    fact = load_constellations([{"name_en": "Lyra", "stars": ["Vega", "Sheliak"]}])[0]
    assert fact.notable_stars == ("Vega (베가)", "Sheliak")


def test_wrapper_and_array_forms_load_the_same(constellations_raw):
    wrapped = load_constellations(constellations_raw)
    bare = load_constellations(constellations_raw["constellations"])
    assert wrapped == bare
    assert len(wrapped) == 6


def test_constellation_fields_are_normalized(constellations_raw):
    facts = _by_name(load_constellations(constellations_raw))

    orion = facts["Orion"]
    assert orion.name_local == "오리온자리"
    assert orion.hemisphere == Hemisphere.north
    assert orion.season == Season.winter
    assert orion.notable_stars == ("Betelgeuse (베텔게우스)", "Rigel (리겔)")

    assert facts["Scorpius"].notable_stars == ("Antares (안타레스)",)
    assert facts["Scorpius"].hemisphere == Hemisphere.south
    assert facts["Crux"].hemisphere == Hemisphere.south
    assert facts["Crux"].season == Season.spring


def test_cancer_season_is_forced_to_winter(constellations_raw):
    cancer = _by_name(load_constellations(constellations_raw))["Cancer"]
    assert cancer.season == Season.winter


def test_cancer_correction_matches_local_name_only():
    facts = load_constellations([{"name_ko": "게자리", "season": "summer"}])
    assert facts[0].season == Season.winter


def test_records_without_any_name_are_dropped():
    facts = load_constellations(
        [
            {"hemisphere": "N", "season": "summer"},
            {"name_en": "Lyra"},
            {"name_ko": "백조자리"},
            "not a record",
        ]
    )
    assert [(f.name_canonical, f.name_local) for f in facts] == [
        ("Lyra", "Lyra"),
        ("백조자리", "백조자리"),
    ]


def test_missing_season_stays_undefined():
    fact = load_constellations([{"name_en": "Lyra", "name_ko": "거문고자리"}])[0]
    assert fact.season is None


def test_solar_system_normalization(solar_raw):
    sun, bodies, eclipses = load_solar_system(solar_raw)

    assert sun is not None and sun.kind == BodyKind.star
    by_name = _by_name(bodies)

    mars = by_name["Mars"]
    assert mars.name_local == "화성"
    assert mars.orbit_order == 4
    assert mars.planet_type == PlanetType.terrestrial

    assert by_name["Jupiter"].planet_type == PlanetType.gas
    assert by_name["Neptune"].planet_type == PlanetType.ice
    assert by_name["Pluto"].kind == BodyKind.dwarf_planet
    assert by_name["Titan"].parent_body == "Saturn"

    assert [e.type for e in eclipses] == [EclipseType.solar, EclipseType.lunar]
    assert eclipses[0].body_order == ("Sun", "Moon", "Earth")


def test_bad_eclipses_are_dropped():
    _, _, eclipses = load_solar_system(
        {
            "eclipses": [
                {"type": "solar", "order": ["Sun", "Moon"]},
                {"type": "solar", "order": ["Sun", "Sun", "Earth"]},
                {"type": "comet", "order": ["Sun", "Moon", "Earth"]},
            ]
        }
    )
    assert eclipses == ()


def test_store_pools(store):
    assert [p.name_canonical for p in store.planets] == [
        "Mercury",
        "Earth",
        "Mars",
        "Jupiter",
        "Saturn",
        "Neptune",
    ]
    assert len(store.orbit_pool) == 6
    assert {m.name_canonical for m in store.moons} == {"Moon", "Titan"}
    assert len(store.season_pool) == 4
    assert len(store.star_pool) == 5
    assert {a.display_name for a in store.chart_assets} == {"Orion", "Lyra", "Scorpius"}
    photo_kinds = {a.display_name: a.kind for a in store.photo_assets}
    assert photo_kinds["Sun"] == BodyKind.star
    assert photo_kinds["Titan"] == BodyKind.moon
    assert store.pool_sizes()["sun"] is True


def test_loading_same_bytes_twice_is_identical(tmp_path, constellations_raw, solar_raw):
    c_bytes = json.dumps(constellations_raw).encode("utf-8")
    s_bytes = json.dumps(solar_raw).encode("utf-8")

    first = FactStore.from_raw(json.loads(c_bytes), json.loads(s_bytes))
    second = FactStore.from_raw(json.loads(c_bytes), json.loads(s_bytes))
    assert first == second


def test_missing_and_broken_files_give_empty_pools(tmp_path, caplog):
    broken = tmp_path / "solar.json"
    broken.write_text("{not json", encoding="utf-8")

    with caplog.at_level(logging.WARNING):
        store = FactStore.from_paths(tmp_path / "missing.json", broken)

    assert store.constellations == ()
    assert store.planets == ()
    assert store.sun is None
    assert "load failed" in caplog.text


def test_read_json_raises_data_load_error(tmp_path):
    with pytest.raises(DataLoadError):
        read_json(tmp_path / "nope.json")


def test_bundled_data_loads():
    settings = Settings(_env_file=None)
    store = FactStore.from_paths(settings.constellations_path, settings.solar_system_path)

    assert len(store.constellations) >= 20
    assert len(store.planets) == 8
    assert store.sun is not None
    assert _by_name(store.constellations)["Cancer"].season == Season.winter
    assert all(c.hemisphere != Hemisphere.south for c in store.season_pool)


def test_season_pool_leaves_out_southern_constellations(store):
    names = {c.name_canonical for c in store.season_pool}
    assert names == {"Orion", "Lyra", "Cancer", "Cygnus"}
    assert "Crux" not in names
    assert "Scorpius" not in names
