"""Central dependency providers.

The fact store is built once per process and shared read-only; tests override
these providers (``app.dependency_overrides``) or clear the caches.
"""

from __future__ import annotations

from functools import lru_cache
from typing import TYPE_CHECKING

from starquiz.core.settings import get_settings

if TYPE_CHECKING:
    from starquiz.services.assets import DirectoryAssetResolver
    from starquiz.services.fact_store import FactStore
    from starquiz.services.question_generator import QuestionGenerator


@lru_cache(maxsize=1)
def get_chart_resolver() -> DirectoryAssetResolver:
    from starquiz.services.assets import DirectoryAssetResolver

    settings = get_settings()
    return DirectoryAssetResolver(
        directory=settings.chart_image_dir,
        url_prefix=settings.public_url(settings.chart_image_subdir),
        credit=settings.chart_credit,
    )


@lru_cache(maxsize=1)
def get_photo_resolver() -> DirectoryAssetResolver:
    from starquiz.services.assets import DirectoryAssetResolver

    settings = get_settings()
    return DirectoryAssetResolver(
        directory=settings.photo_image_dir,
        url_prefix=settings.public_url(settings.photo_image_subdir),
        credit=settings.photo_credit,
    )


@lru_cache(maxsize=1)
def get_fact_store() -> FactStore:
    from starquiz.services.fact_store import FactStore

    settings = get_settings()
    return FactStore.from_paths(
        settings.constellations_path,
        settings.solar_system_path,
        chart_resolver=get_chart_resolver(),
        photo_resolver=get_photo_resolver(),
    )


@lru_cache(maxsize=1)
def get_question_generator() -> QuestionGenerator:
    from starquiz.services.question_generator import QuestionGenerator

    return QuestionGenerator(store=get_fact_store())


def clear_caches() -> None:
    for provider in (get_chart_resolver, get_photo_resolver, get_fact_store, get_question_generator):
        provider.cache_clear()
