#!/usr/bin/env python3
"""Download planet photographs listed in a manifest into the photo directory.

Manifest format::

    {"planets": [{"name_en": "Mars", "slug": "mars", "url": "...", "page": "..."}]}

Each image is saved as ``<slug>.<ext>`` so the photo resolver can match it by
name. When the direct URL fails and a ``page`` is given, the page's
``og:image`` / ``twitter:image`` is tried instead.
"""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Any, Optional
from urllib.parse import urljoin

import requests
from bs4 import BeautifulSoup
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from scripts._bootstrap import bootstrap

bootstrap()

from starquiz.core.logging import setup_logging  # noqa: E402
from starquiz.core.settings import settings  # noqa: E402

logger = logging.getLogger("download_planet_images")

DEFAULT_MANIFEST = Path(__file__).resolve().parent / "planet_image_manifest.json"
USER_AGENT = "Mozilla/5.0 (compatible; starquiz-image-downloader/1.0)"
MAX_ATTEMPTS = 5
BACKOFF_SECONDS = 1.5
MAX_WAIT_SECONDS = 20.0


class DownloadError(Exception):
    pass


def ext_from_content_type(content_type: str | None) -> str:
    ct = (content_type or "").lower()
    if "png" in ct:
        return "png"
    if "webp" in ct:
        return "webp"
    if "svg" in ct:
        return "svg"
    return "jpg"


def ext_from_url(url: str) -> Optional[str]:
    path = url.split("?", 1)[0].lower()
    for ext in ("png", "webp", "svg", "jpg"):
        if path.endswith(f".{ext}"):
            return ext
    if path.endswith(".jpeg"):
        return "jpg"
    return None


def find_og_image(html: str) -> Optional[str]:
    soup = BeautifulSoup(html, "html.parser")
    for attrs in ({"property": "og:image"}, {"name": "twitter:image"}):
        tag = soup.find("meta", attrs=attrs)
        if tag is not None and tag.get("content"):
            return tag["content"].strip()
    return None


class ImageDownloader:
    def __init__(self, session: requests.Session | None = None, timeout: int = 30) -> None:
        self.session = session or requests.Session()
        self.session.headers.setdefault("User-Agent", USER_AGENT)
        self.timeout = timeout

    def discover_from_page(self, page_url: str) -> str:
        resp = self.session.get(page_url, timeout=self.timeout)
        resp.raise_for_status()
        og = find_og_image(resp.text)
        if not og:
            raise ValueError(f"og:image not found on {page_url}")
        return urljoin(page_url, og)

    def save_image(self, url: str, out_base: Path) -> Path:
        resp = self.session.get(url, timeout=self.timeout)
        resp.raise_for_status()
        ext = ext_from_url(url) or ext_from_content_type(resp.headers.get("content-type"))
        out_path = out_base.with_name(f"{out_base.name}.{ext}")
        out_path.write_bytes(resp.content)
        return out_path

    @retry(
        stop=stop_after_attempt(MAX_ATTEMPTS),
        wait=wait_exponential(multiplier=BACKOFF_SECONDS, max=MAX_WAIT_SECONDS),
        retry=retry_if_exception_type(DownloadError),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    def download(self, url: str, out_base: Path, page: Optional[str] = None) -> Path:
        """Save ``url``, or the page's og:image when the direct download fails."""
        try:
            return self.save_image(url, out_base)
        except (requests.RequestException, OSError) as exc:
            logger.warning("Direct download failed: %s", exc)
            if not page:
                raise DownloadError(str(exc)) from exc
        try:
            og_url = self.discover_from_page(page)
            logger.info("Found og:image: %s", og_url)
            return self.save_image(og_url, out_base)
        except (requests.RequestException, OSError, ValueError) as exc:
            raise DownloadError(f"og:image fallback failed: {exc}") from exc

    def fetch(
        self,
        entry: dict[str, Any],
        out_dir: Path,
        *,
        attempts: int = MAX_ATTEMPTS,
        backoff: float = BACKOFF_SECONDS,
    ) -> Optional[Path]:
        slug = entry.get("slug")
        url = entry.get("url")
        name = entry.get("name_en") or entry.get("name_ko") or slug
        if not slug or not url:
            logger.warning("Skipping manifest entry without slug/url: %s", entry)
            return None

        logger.info("%s (%s) <- %s", name, slug, url)
        download = type(self).download.retry_with(
            stop=stop_after_attempt(attempts),
            wait=wait_exponential(multiplier=backoff, max=MAX_WAIT_SECONDS),
        )
        try:
            return download(self, url, out_dir / slug, entry.get("page"))
        except DownloadError as exc:
            logger.error("FAILED: %s (%s), update its URL in the manifest: %s", name, slug, exc)
            return None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Download planet images from a manifest")
    parser.add_argument("--manifest", type=Path, default=DEFAULT_MANIFEST)
    parser.add_argument("--out-dir", type=Path, default=settings.photo_image_dir)
    parser.add_argument("--attempts", type=int, default=MAX_ATTEMPTS)
    return parser


def main() -> None:
    setup_logging()
    args = build_parser().parse_args()
    if not args.manifest.exists():
        raise SystemExit(f"Manifest not found: {args.manifest}")

    manifest = json.loads(args.manifest.read_text(encoding="utf-8"))
    planets = manifest.get("planets") or []
    logger.info("Total planets: %d", len(planets))

    args.out_dir.mkdir(parents=True, exist_ok=True)
    downloader = ImageDownloader()
    saved = 0
    for entry in planets:
        path = downloader.fetch(entry, args.out_dir, attempts=args.attempts)
        if path is not None:
            logger.info("Saved: %s", path)
            saved += 1
    logger.info("Done: %d/%d saved", saved, len(planets))


if __name__ == "__main__":
    main()
