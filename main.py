#!/usr/bin/env python3
"""
YouTube channel scraper

Collects a channel's identity, its most recent videos and its most popular
videos, then stores them in a local catalog:

    data/<channel id>/identity.json
    data/<channel id>/collection.json
    data/index.json

Usage:
    python main.py https://www.youtube.com/@veritasium
    python main.py https://www.youtube.com/@veritasium --debug --visible

Settings are read from the environment (see config.py); flags override them.
Exit code is 0 on success and 1 on any fatal error.
"""
import argparse
import logging
import sys
from typing import List, Optional

import config
from catalog import persist
from errors import ScraperError
from models import CatalogIndex
from scraper import resolve_identity, scrape_channel
from session import BrowserSession


def run(page, channel_url: str, root: str = config.CATALOG_ROOT, max_recent: int = config.MAX_RECENT,
        max_popular: int = config.MAX_POPULAR, debug: bool = False) -> CatalogIndex:
    identity, recent, popular = scrape_channel(page, channel_url, max_recent, max_popular, debug=debug)
    logging.info("💾 Saving catalog for %s", identity.id)
    return persist(identity, recent, popular, root=root)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Scrape a YouTube channel's recent and popular videos")
    parser.add_argument("channel_url", help="Channel URL (/@handle, /channel/<id> or /c/<name>)")
    parser.add_argument("--debug", action="store_true", help="Save screenshots and HTML of each visited page")
    parser.add_argument("--visible", action="store_true", help="Show the browser window (headless=false)")
    parser.add_argument("--output", "-o", default=config.CATALOG_ROOT, help="Catalog root directory")
    parser.add_argument("--max-recent", type=int, default=config.MAX_RECENT, help="Recent videos to keep")
    parser.add_argument("--max-popular", type=int, default=config.MAX_POPULAR, help="Popular videos to keep")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.info("=" * 60)
    logging.info("YouTube channel scraper")
    if args.debug:
        logging.info("🔍 Debug mode: page dumps enabled")
    if args.visible:
        logging.info("👁️  Visible browser mode")
    logging.info("=" * 60)

    try:
        channel_id = resolve_identity(args.channel_url)
    except ScraperError as e:
        logging.error("%s", e)
        return 1

    session = BrowserSession(headless=config.HEADLESS and not args.visible)
    try:
        session.start()
        index = run(session.page, args.channel_url, root=args.output, max_recent=args.max_recent,
                    max_popular=args.max_popular, debug=args.debug)
    except ScraperError as e:
        logging.error("Scrape failed: %s", e)
        return 1
    except Exception as e:
        logging.error("Unhandled error: %s", e, exc_info=True)
        return 1
    finally:
        logging.info("SCRAPING FINISHED — cleaning up")
        try:
            session.close()
        except Exception as e:
            logging.debug("Browser close failed: %s", e)

    entry = index.get(channel_id)
    logging.info("✅ Done. Catalog entry: %s (%d channels indexed)", entry.storage_path if entry else channel_id,
                 len(index.entries))
    return 0


if __name__ == "__main__":
    sys.exit(main())
