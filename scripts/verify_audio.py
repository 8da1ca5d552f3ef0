#!/usr/bin/env python3
"""
Check that recitation audio is reachable on EveryAyah.com before a session.

Usage:
    python scripts/verify_audio.py 1                       # all of Al-Fatihah
    python scripts/verify_audio.py 2 --start 1 --end 5
    python scripts/verify_audio.py 36 --reciter Maher_AlMuaiqly_128kbps
    python scripts/verify_audio.py --list-reciters
"""
import argparse
import asyncio
import sys
import logging
from pathlib import Path

# Add backend to path
sys.path.insert(0, str(Path(__file__).parent.parent / "backend"))

logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
logger = logging.getLogger("verify_audio")


async def check_url(client, url: str) -> bool:
    import httpx

    try:
        resp = await client.head(url)
        return resp.status_code == 200
    except httpx.HTTPError as e:
        logger.warning(f"HEAD {url} failed: {e}")
        return False


async def main():
    from services.audio.resolver import AVAILABLE_RECITERS

    parser = argparse.ArgumentParser(description="Check Quran audio availability on EveryAyah.com")
    parser.add_argument("surah", nargs="?", type=int, help="Surah number (1-114)")
    parser.add_argument("--start", type=int, help="First ayah. Default: 1.")
    parser.add_argument("--end", type=int, help="Last ayah. Default: end of surah.")
    parser.add_argument("--reciter", choices=AVAILABLE_RECITERS)
    parser.add_argument("--list-reciters", action="store_true")
    args = parser.parse_args()

    if args.list_reciters:
        print("Available reciters:")
        for r in AVAILABLE_RECITERS:
            print(f"  {r}")
        return
    if args.surah is None:
        parser.error("surah is required")

    import httpx
    from services.audio.resolver import resolve_audio_candidates
    from utils.quran_data import get_verses_in_range, is_valid_surah

    if not is_valid_surah(args.surah):
        parser.error("surah must be between 1 and 114")

    verses = get_verses_in_range(args.surah, args.start, args.end)
    print(f"Checking {len(verses)} ayahs of surah {args.surah}")

    unavailable = []
    async with httpx.AsyncClient(timeout=10.0, follow_redirects=True) as client:
        for verse in verses:
            candidates = resolve_audio_candidates(verse.surah_id, verse.number, args.reciter)
            results = await asyncio.gather(*(check_url(client, url) for url in candidates))
            for url, ok in zip(candidates, results):
                if not ok:
                    logger.warning(f"{verse}: missing {url}")
            if not any(results):
                unavailable.append(verse)

    if unavailable:
        print(f"{len(unavailable)} ayah(s) have no playable source: {', '.join(map(str, unavailable))}")
        sys.exit(1)
    print("All ayahs have at least one playable source.")


if __name__ == "__main__":
    asyncio.run(main())
