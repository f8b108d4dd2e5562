#!/usr/bin/env python3
"""Write a normalized copy of a constellation catalog.

Applies the same rules the service uses at startup (season/hemisphere labels,
nested star records, manual corrections) so the result can be reviewed or
committed as the new source file.
"""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Any

from scripts._bootstrap import bootstrap

bootstrap()

from starquiz.core.exceptions import DataLoadError  # noqa: E402
from starquiz.core.logging import setup_logging  # noqa: E402
from starquiz.services.fact_store import load_constellations, read_json  # noqa: E402

logger = logging.getLogger("normalize_constellations")


def has_catalog_array(raw: Any) -> bool:
    if isinstance(raw, list):
        return True
    return isinstance(raw, dict) and isinstance(raw.get("constellations"), list)


def normalize_catalog(raw: Any) -> list[dict[str, Any]]:
    if not has_catalog_array(raw):
        raise ValueError(
            'No catalog array found; expected "[ ... ]" or {"constellations": [ ... ]}'
        )
    return [
        {
            "name_en": fact.name_canonical,
            "name_ko": fact.name_local,
            "hemisphere": fact.hemisphere.value,
            "season": fact.season.value if fact.season else None,
            "stars": list(fact.notable_stars),
        }
        for fact in load_constellations(raw)
    ]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Normalize a constellation catalog JSON file")
    parser.add_argument("src", type=Path, help="Source catalog JSON")
    parser.add_argument(
        "--out",
        type=Path,
        default=None,
        help="Output path (default: <src>.normalized.json)",
    )
    return parser


def main() -> None:
    setup_logging()
    args = build_parser().parse_args()
    out = args.out or args.src.with_suffix(".normalized.json")

    try:
        normalized = normalize_catalog(read_json(args.src))
    except DataLoadError as exc:
        raise SystemExit(exc.message) from exc
    except ValueError as exc:
        raise SystemExit(str(exc)) from exc

    out.write_text(json.dumps(normalized, ensure_ascii=False, indent=2), encoding="utf-8")
    logger.info("Normalized %d constellations -> %s", len(normalized), out)


if __name__ == "__main__":
    main()
