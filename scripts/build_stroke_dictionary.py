"""Build the stroke dictionary artifact from kanjiapi.dev (Kanjidic2).

Fetches the stroke count of every jōyō kanji one character at a time, merges
the hiragana table (with voiced forms) and manual overrides, and writes
gokaku/data/strokes.json. Progress is kept in a cache file so an interrupted
run resumes where it stopped.

Usage:
    python scripts/build_stroke_dictionary.py
    python scripts/build_stroke_dictionary.py --output data/strokes.json --delay 0.2
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Dict

import httpx

# Add the parent directory to the path so we can import from gokaku
sys.path.insert(0, str(Path(__file__).parent.parent))

from gokaku.config.logger import app_logger
from gokaku.config.settings import settings
from gokaku.services.stroke_dictionary import build_dictionary_payload, without_generated_entries
from gokaku.services.stroke_sources import fetch_joyo_kanji, fetch_stroke_count

DEFAULT_OUTPUT = Path(__file__).parent.parent / "gokaku" / "data" / "strokes.json"


def load_cache(path: Path) -> Dict[str, int]:
    if not path.exists():
        return {}
    try:
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError:
        app_logger.warning(f"Ignoring unreadable cache file {path}")
        return {}
    return {k: v for k, v in data.items() if isinstance(v, int) and v > 0}


def save_json(path: Path, data: dict) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False, indent=2)


async def build(
    output: Path,
    cache_path: Path,
    base_url: str,
    delay: float,
    retries: int,
    keep_existing: bool = True,
) -> None:
    cache = load_cache(cache_path)

    async with httpx.AsyncClient(timeout=settings.STROKE_LOOKUP_TIMEOUT) as client:
        joyo = await fetch_joyo_kanji(client, base_url)
        todo = [ch for ch in joyo if ch not in cache]
        app_logger.info(f"Fetching stroke counts for {len(todo)} of {len(joyo)} jōyō kanji")

        for i, ch in enumerate(todo, start=1):
            try:
                count = await fetch_stroke_count(client, base_url, ch, retries=retries)
            except (httpx.HTTPError, ValueError) as e:
                app_logger.error(f"{i}/{len(todo)} {ch}: {e}")
            else:
                if count is None:
                    app_logger.warning(f"{i}/{len(todo)} {ch}: not found")
                else:
                    cache[ch] = count
                    app_logger.debug(f"{i}/{len(todo)} {ch}: {count}")
            save_json(cache_path, cache)
            await asyncio.sleep(delay)

    # Characters already in the artifact but outside the jōyō set (e.g. 人名用漢字) are kept
    existing = without_generated_entries(load_cache(output)) if keep_existing else {}
    payload = build_dictionary_payload({**existing, **cache})
    save_json(output, payload)
    app_logger.info(f"Wrote {output} ({payload['meta']['counts']['total']} characters)")
    app_logger.info(f"Cache: {cache_path}")


def main() -> None:
    parser = argparse.ArgumentParser(description="Build the stroke dictionary artifact")
    parser.add_argument("--output", type=Path, default=DEFAULT_OUTPUT)
    parser.add_argument("--cache", type=Path, default=None, help="Resume cache (default: <output>.kanjiapi.cache.json)")
    parser.add_argument("--base-url", default=settings.STROKE_LOOKUP_URL)
    parser.add_argument("--delay", type=float, default=0.12, help="Seconds to wait between requests")
    parser.add_argument("--retries", type=int, default=settings.STROKE_LOOKUP_RETRIES)
    parser.add_argument("--no-keep-existing", action="store_true", help="Drop entries of the current artifact")
    args = parser.parse_args()

    cache_path = args.cache or args.output.with_suffix(".kanjiapi.cache.json")
    asyncio.run(
        build(args.output, cache_path, args.base_url, args.delay, args.retries, not args.no_keep_existing)
    )


if __name__ == "__main__":
    main()
