"""Image asset resolution.

Question builders never look at the filesystem. They receive chart/photo pools
built from an ``AssetResolver``, whose only contract is
``resolve(canonical_name) -> AssetRef | None``.
"""

from __future__ import annotations

import logging
import re
import unicodedata
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional, Protocol

from starquiz.schemas.facts import AssetRef

logger = logging.getLogger(__name__)

IMAGE_SUFFIXES: tuple[str, ...] = (".svg", ".png", ".jpg", ".jpeg", ".webp")

# Some charts ship split in two files; the first one found wins.
DEFAULT_ALIASES: dict[str, tuple[str, ...]] = {
    "serpens": ("serpens_caput", "serpens_cauda"),
    "bootes": ("booetes",),
}


class AssetResolver(Protocol):
    def resolve(self, canonical_name: str) -> Optional[AssetRef]: ...


def slugify(name: str) -> str:
    """Turn a display name into a filename stem: "Boötes" -> "bootes"."""
    text = (name or "").strip().lower()
    text = unicodedata.normalize("NFD", text)
    text = "".join(ch for ch in text if not unicodedata.combining(ch))
    text = re.sub(r"\(.*?\)", " ", text)
    text = re.sub(r"[^\w\s-]", "", text)
    return re.sub(r"[\s-]+", "_", text).strip("_")


@dataclass
class DirectoryAssetResolver:
    """Match names to image files in one directory by slug."""

    directory: Path
    url_prefix: str
    credit: str = ""
    aliases: Mapping[str, tuple[str, ...]] = field(default_factory=lambda: dict(DEFAULT_ALIASES))

    def __post_init__(self) -> None:
        self.directory = Path(self.directory)
        self._index = self._scan()

    def _scan(self) -> dict[str, str]:
        if not self.directory.is_dir():
            logger.info("Image directory not found, no assets: %s", self.directory)
            return {}
        index: dict[str, str] = {}
        for path in sorted(self.directory.iterdir()):
            if path.is_file() and path.suffix.lower() in IMAGE_SUFFIXES:
                index.setdefault(path.stem.lower(), path.name)
        logger.info("Indexed %d images under %s", len(index), self.directory)
        return index

    def __len__(self) -> int:
        return len(self._index)

    def resolve(self, canonical_name: str) -> Optional[AssetRef]:
        slug = slugify(canonical_name)
        if not slug:
            return None
        for candidate in (slug, *self.aliases.get(slug, ())):
            filename = self._index.get(candidate)
            if filename:
                url = f"{self.url_prefix.rstrip('/')}/{filename}"
                return AssetRef(url=url, credit=self.credit)
        return None


class StaticAssetResolver:
    """Resolver backed by an explicit name -> AssetRef mapping."""

    def __init__(self, assets: Mapping[str, AssetRef] | None = None) -> None:
        self._assets = {slugify(k): v for k, v in (assets or {}).items()}

    def resolve(self, canonical_name: str) -> Optional[AssetRef]:
        return self._assets.get(slugify(canonical_name))


__all__ = [
    "AssetResolver",
    "DEFAULT_ALIASES",
    "DirectoryAssetResolver",
    "IMAGE_SUFFIXES",
    "StaticAssetResolver",
    "slugify",
]
