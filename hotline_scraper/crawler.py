"""
Checkpointed crawl of the Hotline Archives: year -> make -> model -> engine -> documents.
Resumable at any point: completed units and visited HANumbers are consulted before any navigation.
"""
import asyncio
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import AsyncIterator, Callable

from tqdm import tqdm

from hotline_scraper.config import (
    DOCUMENT_FILE_PREFIX,
    SAFE_NAME_MAX_LENGTH,
    SENTINEL_OPTION_VALUES,
    CrawlConfig,
)
from hotline_scraper.errors import NavigationError, PersistenceError
from hotline_scraper.models import (
    CheckpointStore,
    DeduplicationIndex,
    DocumentReference,
    FetchedDocument,
    UnitRecord,
    WorkUnit,
)
from hotline_scraper.navigator import Navigator

logger = logging.getLogger(__name__)


@dataclass
class CrawlStats:
    makes_done: int = 0
    makes_failed: int = 0
    models_seen: int = 0
    units_processed: int = 0
    units_skipped: int = 0
    units_failed: int = 0
    documents_fetched: int = 0
    documents_skipped: int = 0
    documents_failed: int = 0
    stopped: bool = False


# --------------- Naming ---------------
def safe_file_name(text: str, max_length: int = SAFE_NAME_MAX_LENGTH) -> str:
    """Filesystem-safe name: non-alphanumerics -> '_', runs collapsed, bounded length."""
    name = re.sub(r"[^a-z0-9]", "_", text or "unknown", flags=re.IGNORECASE)
    name = re.sub(r"_+", "_", name)
    return name[:max_length]


def document_file_name(ref: DocumentReference, identifying_text: str) -> str:
    safe = safe_file_name(identifying_text)
    if ref.document_id:
        return f"{DOCUMENT_FILE_PREFIX}_{ref.document_id}_{safe}.html"
    return f"{safe}_{ref.ordinal}.html"


def usable_options(options: list[tuple[str, str]]) -> list[tuple[str, str]]:
    """Drop the "-- Select --" placeholder entries (empty or zero value)."""
    return [(value, label) for value, label in options if value not in SENTINEL_OPTION_VALUES]


# --------------- Enumeration ---------------
class EnumerationPlanner:
    def __init__(self, navigator: Navigator, year: str):
        self.navigator = navigator
        self.year = year

    async def list_models(self, make: str) -> list[tuple[str, str]]:
        await self.navigator.select_axis("year", self.year)
        await self.navigator.select_axis("make", make)
        models = usable_options(await self.navigator.list_options("model"))
        logger.info("Found %d models for %s %s", len(models), make, self.year)
        return models

    async def list_engines(self, make: str, model_value: str) -> list[tuple[str, str]]:
        await self.navigator.select_axis("year", self.year)
        await self.navigator.select_axis("make", make)
        await self.navigator.select_axis("model", model_value)
        return usable_options(await self.navigator.list_options("engine"))

    async def work_units(self, make: str, models: list[tuple[str, str]] | None = None) -> AsyncIterator[WorkUnit]:
        """Depth-first over models then engines, in the order the site lists them."""
        if models is None:
            models = await self.list_models(make)
        for i, (model_value, model_label) in enumerate(models, start=1):
            logger.info("--- Processing Model %d/%d: %s ---", i, len(models), model_label)
            try:
                engines = await self.list_engines(make, model_value)
            except NavigationError as e:
                logger.warning("Skipping %s %s %s: engine list failed: %s", self.year, make, model_label, e)
                continue
            logger.info("Found %d engines for %s", len(engines), model_label)
            for j, (engine_value, engine_label) in enumerate(engines, start=1):
                logger.info("  Engine %d/%d: %s", j, len(engines), engine_label)
                yield WorkUnit(
                    year=self.year,
                    make=make,
                    model=model_label,
                    engine=engine_label,
                    model_value=model_value,
                    engine_value=engine_value,
                )


# --------------- Documents ---------------
class DocumentFetcher:
    def __init__(self, navigator: Navigator, index: DeduplicationIndex, output_dir: Path, delay_sec: float = 0.0):
        self.navigator = navigator
        self.index = index
        self.output_dir = Path(output_dir)
        self.delay_sec = delay_sec

    async def fetch(self, ref: DocumentReference) -> Path:
        await self.navigator.open(ref.source_locator)
        identifying_text, content = await self.navigator.extract_current_document()
        doc = FetchedDocument(
            identifying_text=identifying_text,
            content=content.encode("utf-8") if isinstance(content, str) else content,
        )
        path = self.output_dir / document_file_name(ref, doc.identifying_text)
        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
            path.write_bytes(doc.content)
        except OSError as e:
            raise PersistenceError(f"Cannot write document {path}: {e}") from e
        logger.info("      Saved to: %s", path.name)
        # Recorded only once the file exists: a crash in between means a harmless re-fetch.
        if ref.document_id:
            self.index.record_document(ref.document_id)
            logger.info("      Added HANumber %s to processed list", ref.document_id)
        if self.delay_sec:
            await asyncio.sleep(self.delay_sec)
        return path


# --------------- Units ---------------
class UnitProcessor:
    def __init__(self, navigator: Navigator, index: DeduplicationIndex, fetcher: DocumentFetcher, stats: CrawlStats | None = None):
        self.navigator = navigator
        self.index = index
        self.fetcher = fetcher
        self.stats = stats if stats is not None else CrawlStats()

    async def _open_listing(self, unit: WorkUnit) -> list[DocumentReference]:
        await self.navigator.select_axis("year", unit.year)
        await self.navigator.select_axis("make", unit.make)
        await self.navigator.select_axis("model", unit.model_value or unit.model)
        await self.navigator.select_axis("engine", unit.engine_value or unit.engine)
        await self.navigator.activate_view("vehicle")
        await self.navigator.activate_view("fix_data")
        await self.navigator.activate_view("hotline_archives")
        locators = await self.navigator.list_document_locators()
        return [DocumentReference.from_locator(url, ordinal=k) for k, url in enumerate(locators, start=1)]

    async def _reset(self, unit: WorkUnit) -> None:
        try:
            await self.navigator.reset()
        except NavigationError as e:
            logger.warning("  Could not return to vehicle selection after %s: %s", unit, e)

    async def process(self, unit: WorkUnit) -> UnitRecord | None:
        """Fetch every undone document of one unit and mark the unit done. None if it was already done.

        NavigationError while reaching the listing propagates and leaves the unit undone.
        Failures on single documents are logged and do not stop the unit.
        """
        if self.index.has_unit(unit):
            logger.info("  SKIPPING: Already processed (%s)", unit)
            self.stats.units_skipped += 1
            return None

        try:
            refs = await self._open_listing(unit)
            logger.info("  Found %d URLs", len(refs))
            for ref in refs:
                if self.index.has_document(ref.document_id):
                    logger.info("    URL %d: Skipping HANumber %s (already processed)", ref.ordinal, ref.document_id)
                    self.stats.documents_skipped += 1
                    continue
                if ref.document_id:
                    logger.info("    URL %d: Processing HANumber %s", ref.ordinal, ref.document_id)
                else:
                    logger.info("    URL %d: No HANumber found in URL", ref.ordinal)
                try:
                    await self.fetcher.fetch(ref)
                    self.stats.documents_fetched += 1
                except NavigationError as e:
                    logger.warning("    URL %d (%s) failed for %s: %s", ref.ordinal, ref.source_locator, unit, e)
                    self.stats.documents_failed += 1

            record = UnitRecord.for_unit(unit, documents_discovered=len(refs))
            self.index.record_unit(record)
            self.stats.units_processed += 1
            logger.info("  Marked as processed: %s", unit)
            return record
        finally:
            await self._reset(unit)


# --------------- Orchestration ---------------
class CrawlOrchestrator:
    def __init__(
        self,
        navigator: Navigator,
        config: CrawlConfig,
        store: CheckpointStore | None = None,
        should_stop: Callable[[], bool] | None = None,
        progress_bar: bool = True,
    ):
        self.navigator = navigator
        self.config = config
        self.store = store or CheckpointStore.from_config(config)
        self.index = DeduplicationIndex.from_store(self.store)
        self.stats = CrawlStats()
        self.planner = EnumerationPlanner(navigator, config.year)
        self.fetcher = DocumentFetcher(navigator, self.index, config.output_dir, config.document_delay_sec)
        self.processor = UnitProcessor(navigator, self.index, self.fetcher, self.stats)
        self.should_stop = should_stop or (lambda: False)
        self.progress_bar = progress_bar

    async def _crawl_make(self, make: str) -> None:
        logger.info("========== PROCESSING MAKE: %s ==========", make)
        try:
            models = await self.planner.list_models(make)
        except NavigationError as e:
            logger.warning("Skipping make %s %s: model list failed: %s", self.config.year, make, e)
            self.stats.makes_failed += 1
            return
        self.stats.models_seen += len(models)
        async for unit in self.planner.work_units(make, models):
            if self.should_stop():
                self.stats.stopped = True
                break
            try:
                await self.processor.process(unit)
            except NavigationError as e:
                logger.warning("  Unit %s failed, will retry next run: %s", unit, e)
                self.stats.units_failed += 1
        if self.stats.stopped:
            return
        self.stats.makes_done += 1
        logger.info("========== COMPLETED MAKE: %s ==========", make)

    async def run(self) -> CrawlStats:
        """Authenticate, then crawl every configured make. Fatal errors close the session and propagate."""
        try:
            await self.navigator.authenticate()
            makes = self.config.makes
            make_iter = tqdm(makes, desc="Makes", unit="make", total=len(makes), ncols=100, disable=not self.progress_bar)
            for make in make_iter:
                if self.should_stop():
                    self.stats.stopped = True
                    break
                await self._crawl_make(make)
                make_iter.set_postfix_str(
                    f"{make} ({self.stats.units_processed} done, {self.stats.units_skipped} skipped)"
                )
                if self.stats.stopped:
                    break
        except BaseException as e:
            logger.error("Fatal error (%s); closing browser session.", type(e).__name__)
            await self.navigator.close()
            raise
        self._log_summary()
        return self.stats

    def _log_summary(self) -> None:
        s = self.stats
        if s.stopped:
            logger.info("=== STOPPED: stop requested; resume by running again ===")
        else:
            logger.info("=== ALL MAKES AND MODELS PROCESSED! ===")
        logger.info(
            "Makes: %d done, %d failed. Models: %d seen. Units: %d processed, %d skipped, %d failed.",
            s.makes_done, s.makes_failed, s.models_seen, s.units_processed, s.units_skipped, s.units_failed,
        )
        logger.info(
            "Documents: %d fetched, %d skipped, %d failed.",
            s.documents_fetched, s.documents_skipped, s.documents_failed,
        )
        logger.info("Total HANumbers processed: %d", self.index.document_count)
        logger.info("Total model combinations processed: %d", self.index.unit_count)
