"""
Hotline Archive scraper – Playwright session, checkpoint/resume, one document file per HANumber.

Usage:
  hotline-scraper
  hotline-scraper --make Honda --make Toyota --year 2021
  hotline-scraper --output-dir out --checkpoint-dir state --no-keep-browser-open
"""
import argparse
import asyncio
import logging
import signal
import sys
from pathlib import Path

from hotline_scraper.config import CrawlConfig, load_config
from hotline_scraper.crawler import CrawlOrchestrator
from hotline_scraper.errors import ScraperError
from hotline_scraper.navigator import PlaywrightNavigator

logger = logging.getLogger("hotline_scraper")

_shutdown = False


def _set_shutdown(*_):
    global _shutdown
    _shutdown = True
    logger.info("SIGTERM/SIGINT received; finishing current unit and exiting.")


async def _wait_before_close(keep_browser_open: bool):
    """If keep_browser_open, wait for Enter so the user can inspect the browser."""
    if not keep_browser_open:
        return
    logger.info("Scrape finished. Press Enter to close the browser...")
    loop = asyncio.get_running_loop()
    await loop.run_in_executor(None, lambda: input("Press Enter to close the browser... "))


async def run_crawl(config: CrawlConfig) -> int:
    """Crawl every configured make. Returns number of documents fetched in this run."""
    navigator = PlaywrightNavigator()
    orchestrator = CrawlOrchestrator(navigator, config, should_stop=lambda: _shutdown)
    logger.info(
        "Crawling year %s, makes %s -> %s (checkpoints in %s)",
        config.year, ", ".join(config.makes), config.output_dir, config.checkpoint_dir,
    )
    stats = await orchestrator.run()
    await _wait_before_close(config.keep_browser_open and not stats.stopped)
    await navigator.close()
    return stats.documents_fetched


def main():
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    ap = argparse.ArgumentParser(description="Hotline Archives scraper (resumable)")
    ap.add_argument("--make", action="append", dest="makes", help="Make to process (repeatable). Default: HOTLINE_MAKES or built-in list")
    ap.add_argument("--year", help="Model year to process. Default: HOTLINE_YEAR or 2020")
    ap.add_argument("--output-dir", type=Path, help="Directory for saved documents")
    ap.add_argument("--checkpoint-dir", type=Path, help="Directory for processed_hanumbers.json / processed_models.json")
    ap.add_argument("--keep-browser-open", action="store_true", help="After run, wait for Enter before closing browser (default when browser is visible)")
    ap.add_argument("--no-keep-browser-open", action="store_true", dest="no_keep_browser_open", help="Close browser immediately when done (no Enter)")
    args = ap.parse_args()

    keep_browser_open = None
    if args.keep_browser_open:
        keep_browser_open = True
    if getattr(args, "no_keep_browser_open", False):
        keep_browser_open = False

    try:
        config = load_config(
            makes=args.makes,
            year=args.year,
            output_dir=args.output_dir,
            checkpoint_dir=args.checkpoint_dir,
            keep_browser_open=keep_browser_open,
        )
    except ScraperError as e:
        logger.error("Invalid configuration: %s", e)
        return 2

    signal.signal(signal.SIGTERM, _set_shutdown)
    signal.signal(signal.SIGINT, _set_shutdown)
    try:
        n = asyncio.run(run_crawl(config))
    except ScraperError as e:
        logger.exception("Run aborted: %s", e)
        return 1
    logger.info("Done. Saved %d documents to %s", n, config.output_dir)
    return 0


if __name__ == "__main__":
    sys.exit(main())
