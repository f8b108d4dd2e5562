"""Multiple-choice question generation.

Each category has one builder that draws from a single pool of the
:class:`~starquiz.services.fact_store.FactStore` and returns ``None`` when that pool
is empty. :meth:`QuestionGenerator.generate` picks a builder for the requested mode
and walks :data:`PRIORITY` until one succeeds, ending with a static question, so a
request always gets a well-formed :class:`Question`.

All randomness goes through the ``rng`` handed to the generator; seed it in tests.
"""

from __future__ import annotations

import itertools
import logging
import random
from typing import Callable, Hashable, Iterable, Optional, Sequence, TypeVar

from starquiz.schemas.facts import CANONICAL_SEASONS, BodyKind, Hemisphere, PlanetType, Season
from starquiz.schemas.quiz import Question, QuizCategory
from starquiz.services.fact_store import PLANET_LOOKUP, FactStore

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=Hashable)

CHOICE_COUNT = 4
ARROW = " → "

INNER_PLANETS = frozenset({"Mercury", "Venus", "Earth", "Mars"})
INNER_LABEL = "Inner planet"
OUTER_LABEL = "Outer planet"

MOON_PHASES: tuple[str, ...] = ("Full moon", "First quarter", "Waxing crescent", "Waning crescent")
# Phase that is below the horizon at each time of night.
PHASE_NOT_VISIBLE: dict[str, str] = {
    "evening": "Waning crescent",
    "midnight": "Waxing crescent",
    "dawn": "First quarter",
}

PRIORITY: tuple[QuizCategory, ...] = (
    QuizCategory.season,
    QuizCategory.star,
    QuizCategory.hemisphere,
    QuizCategory.image,
    QuizCategory.planet_type,
    QuizCategory.orbit_order,
    QuizCategory.inner_outer,
    QuizCategory.moon,
    QuizCategory.eclipse,
    QuizCategory.photo,
    QuizCategory.lunar,
    QuizCategory.sun,
)

MODE_GROUPS: dict[str, tuple[QuizCategory, ...]] = {
    "solar": (
        QuizCategory.planet_type,
        QuizCategory.orbit_order,
        QuizCategory.inner_outer,
        QuizCategory.moon,
        QuizCategory.sun,
        QuizCategory.eclipse,
    ),
}


def ordinal_label(n: int) -> str:
    if 10 <= n % 100 <= 20:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(n % 10, "th")
    return f"{n}{suffix} planet"


_CONSTELLATION_FILLERS = ("Orion", "Ursa Major", "Cassiopeia", "Scorpius", "Leo", "Cygnus")
_PLANET_FILLERS = tuple(PLANET_LOOKUP)

# Used to pad a question to four choices when its own pool is too small.
FILLERS: dict[QuizCategory, tuple[str, ...]] = {
    QuizCategory.season: tuple(s.value for s in Season),
    QuizCategory.star: _CONSTELLATION_FILLERS,
    QuizCategory.image: _CONSTELLATION_FILLERS,
    QuizCategory.planet_type: tuple(t.value for t in PlanetType) + (BodyKind.dwarf_planet.value,),
    QuizCategory.orbit_order: tuple(ordinal_label(n) for n in range(1, 9)),
    QuizCategory.inner_outer: (
        INNER_LABEL,
        OUTER_LABEL,
        BodyKind.dwarf_planet.value,
        "Asteroid belt object",
    ),
    QuizCategory.moon: _PLANET_FILLERS,
    QuizCategory.sun: tuple(k.value for k in BodyKind),
    QuizCategory.eclipse: tuple(ARROW.join(p) for p in itertools.permutations(("Sun", "Moon", "Earth"))),
    QuizCategory.photo: ("Sun", "Moon") + _PLANET_FILLERS,
    QuizCategory.lunar: MOON_PHASES,
}

SUN_DISTRACTORS = (BodyKind.planet.value, BodyKind.moon.value, BodyKind.dwarf_planet.value)

STATIC_FALLBACK = Question(
    category=QuizCategory.sun,
    prompt="What kind of body is the Sun?",
    choices=[BodyKind.star.value, *SUN_DISTRACTORS],
    correct_index=0,
    explanation="The Sun is the only star in the solar system.",
)


def select_distractors(
    correct: T,
    candidates: Iterable[T],
    k: int,
    rng: random.Random,
    *,
    class_of: Optional[Callable[[T], Hashable]] = None,
) -> list[T]:
    """Pick up to ``k`` unique wrong answers.

    Candidates equal to ``correct`` are skipped. With ``class_of``, candidates in
    the same class as ``correct`` are taken before any others. When fewer than
    ``k`` candidates exist all of them are returned.
    """
    seen = {correct}
    unique: list[T] = []
    for candidate in candidates:
        if candidate not in seen:
            seen.add(candidate)
            unique.append(candidate)

    if class_of is None:
        return rng.sample(unique, min(k, len(unique)))

    target = class_of(correct)
    same = [c for c in unique if class_of(c) == target]
    other = [c for c in unique if class_of(c) != target]
    picked = rng.sample(same, min(k, len(same)))
    if len(picked) < k:
        picked.extend(rng.sample(other, min(k - len(picked), len(other))))
    return picked


class QuestionGenerator:
    """Builds questions from a read-only :class:`FactStore`."""

    def __init__(self, store: FactStore, rng: Optional[random.Random] = None) -> None:
        self.store = store
        self.rng = rng if rng is not None else random.Random()
        self.builders: dict[QuizCategory, Callable[[], Optional[Question]]] = {
            QuizCategory.season: self.season_question,
            QuizCategory.hemisphere: self.hemisphere_question,
            QuizCategory.star: self.star_question,
            QuizCategory.image: self.chart_question,
            QuizCategory.planet_type: self.planet_type_question,
            QuizCategory.orbit_order: self.orbit_order_question,
            QuizCategory.inner_outer: self.inner_outer_question,
            QuizCategory.moon: self.moon_question,
            QuizCategory.sun: self.sun_question,
            QuizCategory.eclipse: self.eclipse_question,
            QuizCategory.photo: self.photo_question,
            QuizCategory.lunar: self.lunar_question,
        }

    # ---- dispatch ---------------------------------------------------------

    def generate(self, mode: Optional[str] = None) -> Question:
        """Return a question for ``mode``, falling back until something works."""
        key = (mode or "random").strip().lower()
        if key in MODE_GROUPS:
            group = MODE_GROUPS[key]
            first = self.rng.sample(list(group), len(group))
        else:
            try:
                first = [QuizCategory(key)]
            except ValueError:
                if key != "random":
                    logger.debug("Unknown quiz mode %r, picking at random", mode)
                first = [self.rng.choice(PRIORITY)]

        tried: set[QuizCategory] = set()
        for category in (*first, *PRIORITY):
            if category in tried:
                continue
            tried.add(category)
            question = self.build(category)
            if question is not None:
                return question
            logger.debug("No %s question available, falling back", category.value)

        logger.warning("Every question pool is empty; serving the static fallback")
        return self.static_fallback()

    def static_fallback(self) -> Question:
        """:data:`STATIC_FALLBACK` with its choices reshuffled."""
        return self._assemble(
            STATIC_FALLBACK.category,
            STATIC_FALLBACK.prompt,
            STATIC_FALLBACK.answer,
            list(SUN_DISTRACTORS),
            STATIC_FALLBACK.explanation,
        )

    def build(self, category: QuizCategory) -> Optional[Question]:
        return self.builders[category]()

    def normalize_choices(
        self, category: QuizCategory, correct: str, distractors: Sequence[str]
    ) -> list[str]:
        """Hemisphere questions get exactly two choices, all others exactly four."""
        if category == QuizCategory.hemisphere:
            choices = [h.value for h in Hemisphere]
        else:
            others = [c for c in dict.fromkeys(distractors) if c != correct][: CHOICE_COUNT - 1]
            pool = [f for f in FILLERS.get(category, ()) if f != correct and f not in others]
            need = CHOICE_COUNT - 1 - len(others)
            others.extend(self.rng.sample(pool, min(need, len(pool))))
            choices = [correct, *others]
        self.rng.shuffle(choices)
        return choices

    # ---- helpers ----------------------------------------------------------

    def _assemble(
        self,
        category: QuizCategory,
        prompt: str,
        correct: str,
        distractors: Sequence[str],
        explanation: str,
        *,
        image: Optional[str] = None,
        credit: Optional[str] = None,
    ) -> Question:
        choices = self.normalize_choices(category, correct, distractors)
        return Question(
            category=category,
            prompt=prompt,
            choices=choices,
            correct_index=choices.index(correct),
            explanation=explanation,
            image=image,
            credit=credit or None,
        )

    # ---- constellations ---------------------------------------------------

    def season_question(self) -> Optional[Question]:
        pool = self.store.season_pool
        if not pool:
            return None
        fact = self.rng.choice(pool)
        correct = fact.season.value
        distractors = select_distractors(
            correct, [s.value for s in CANONICAL_SEASONS], CHOICE_COUNT - 1, self.rng
        )
        return self._assemble(
            QuizCategory.season,
            f"In which season is {fact.display_name} best seen from the northern hemisphere?",
            correct,
            distractors,
            f"{fact.display_name} → {correct}",
        )

    def hemisphere_question(self) -> Optional[Question]:
        pool = self.store.hemisphere_pool
        if not pool:
            return None
        fact = self.rng.choice(pool)
        correct = fact.hemisphere
        other = Hemisphere.south if correct == Hemisphere.north else Hemisphere.north
        return self._assemble(
            QuizCategory.hemisphere,
            f"In which hemisphere is {fact.display_name} mainly seen?",
            correct.value,
            [other.value],
            f"{fact.display_name} → {correct.value.lower()}ern hemisphere constellation",
        )

    def star_question(self) -> Optional[Question]:
        pool = self.store.star_pool
        if not pool:
            return None
        fact = self.rng.choice(pool)
        star = self.rng.choice(fact.notable_stars)
        hemispheres = {c.name_canonical: c.hemisphere for c in self.store.constellations}
        candidates = [
            c.name_canonical for c in self.store.constellations if star not in c.notable_stars
        ]
        distractors = select_distractors(
            fact.name_canonical,
            candidates,
            CHOICE_COUNT - 1,
            self.rng,
            class_of=hemispheres.get,
        )
        return self._assemble(
            QuizCategory.star,
            f"Which constellation does {star} belong to?",
            fact.name_canonical,
            distractors,
            f"{star} → {fact.display_name}",
        )

    def chart_question(self) -> Optional[Question]:
        pool = self.store.chart_assets
        if not pool:
            return None
        asset = self.rng.choice(pool)
        distractors = select_distractors(
            asset.display_name, [a.display_name for a in pool], CHOICE_COUNT - 1, self.rng
        )
        return self._assemble(
            QuizCategory.image,
            "Which constellation is shown in this chart?",
            asset.display_name,
            distractors,
            f"Answer: {asset.display_name}",
            image=asset.image_path,
            credit=asset.credit,
        )

    # ---- solar system -----------------------------------------------------

    def planet_type_question(self) -> Optional[Question]:
        pool = [p for p in self.store.planets if p.planet_type is not None]
        if not pool:
            return None
        planet = self.rng.choice(pool)
        correct = planet.planet_type.value
        distractors = select_distractors(
            correct, [t.value for t in PlanetType], CHOICE_COUNT - 1, self.rng
        )
        return self._assemble(
            QuizCategory.planet_type,
            f"What kind of planet is {planet.name_canonical}?",
            correct,
            distractors,
            f"{planet.name_canonical} → {correct}",
        )

    def orbit_order_question(self) -> Optional[Question]:
        pool = self.store.orbit_pool
        if not pool:
            return None
        planet = self.rng.choice(pool)
        correct = ordinal_label(planet.orbit_order)
        distractors = select_distractors(
            correct, [ordinal_label(p.orbit_order) for p in pool], CHOICE_COUNT - 1, self.rng
        )
        return self._assemble(
            QuizCategory.orbit_order,
            f"Counting outward from the Sun, where is {planet.name_canonical}?",
            correct,
            distractors,
            f"{planet.name_canonical} → {correct} from the Sun",
        )

    def inner_outer_question(self) -> Optional[Question]:
        pool = self.store.planets
        if not pool:
            return None
        planet = self.rng.choice(pool)
        inner = planet.name_canonical in INNER_PLANETS
        correct, other = (INNER_LABEL, OUTER_LABEL) if inner else (OUTER_LABEL, INNER_LABEL)
        return self._assemble(
            QuizCategory.inner_outer,
            f"Is {planet.name_canonical} an inner or an outer planet?",
            correct,
            [other],
            f"{planet.name_canonical} → {correct}. "
            "The inner planets are Mercury, Venus, Earth and Mars.",
        )

    def moon_question(self) -> Optional[Question]:
        pool = self.store.moons
        if not pool:
            return None
        moon = self.rng.choice(pool)
        types = {p.name_canonical: p.planet_type for p in self.store.planets}
        for name, info in PLANET_LOOKUP.items():
            types.setdefault(name, info.planet_type)
        distractors = select_distractors(
            moon.parent_body,
            [p.name_canonical for p in self.store.planets],
            CHOICE_COUNT - 1,
            self.rng,
            class_of=types.get,
        )
        name = "the Moon" if moon.name_canonical == "Moon" else moon.name_canonical
        return self._assemble(
            QuizCategory.moon,
            f"Which planet does {name} orbit?",
            moon.parent_body,
            distractors,
            f"{name[:1].upper()}{name[1:]} is a moon of {moon.parent_body}.",
        )

    def sun_question(self) -> Optional[Question]:
        if self.store.sun is None:
            return None
        return self.static_fallback()

    def eclipse_question(self) -> Optional[Question]:
        pool = self.store.eclipses
        if not pool:
            return None
        eclipse = self.rng.choice(pool)
        correct = ARROW.join(eclipse.body_order)
        reverse = ARROW.join(reversed(eclipse.body_order))
        shuffled = [ARROW.join(p) for p in itertools.permutations(eclipse.body_order)]
        distractors = [reverse] + select_distractors(
            correct, [s for s in shuffled if s != reverse], CHOICE_COUNT - 2, self.rng
        )
        explanation = f"{eclipse.type.value}: {correct}"
        if eclipse.description:
            explanation += f" ({eclipse.description})"
        return self._assemble(
            QuizCategory.eclipse,
            f"Which line-up of bodies causes a {eclipse.type.value.lower()}?",
            correct,
            distractors,
            explanation,
        )

    def photo_question(self) -> Optional[Question]:
        pool = self.store.photo_assets
        if not pool:
            return None
        asset = self.rng.choice(pool)
        kinds = {a.display_name: a.kind for a in pool}
        distractors = select_distractors(
            asset.display_name,
            [a.display_name for a in pool],
            CHOICE_COUNT - 1,
            self.rng,
            class_of=kinds.get,
        )
        return self._assemble(
            QuizCategory.photo,
            "Which body is shown in this photo?",
            asset.display_name,
            distractors,
            f"Answer: {asset.display_name}",
            image=asset.image_path,
            credit=asset.credit,
        )

    def lunar_question(self) -> Optional[Question]:
        has_moon = any(
            m.name_canonical == "Moon" or m.parent_body == "Earth" for m in self.store.moons
        )
        if not has_moon:
            return None
        time_of_night = self.rng.choice(sorted(PHASE_NOT_VISIBLE))
        correct = PHASE_NOT_VISIBLE[time_of_night]
        distractors = select_distractors(correct, MOON_PHASES, CHOICE_COUNT - 1, self.rng)
        return self._assemble(
            QuizCategory.lunar,
            f"Which phase of the Moon can you not see in the {time_of_night}?",
            correct,
            distractors,
            f"{correct} is below the horizon in the {time_of_night}.",
        )


__all__ = [
    "ARROW",
    "FILLERS",
    "MODE_GROUPS",
    "PRIORITY",
    "QuestionGenerator",
    "STATIC_FALLBACK",
    "ordinal_label",
    "select_distractors",
]
