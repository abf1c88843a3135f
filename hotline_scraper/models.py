"""
Hotline Archive checkpoint state (JSON logs, rewritten atomically).
processed_hanumbers.json: array of visited document ids (HANumber).
processed_models.json: array of completed unit records (year, make, model, engine, completed_at, documents_discovered).
"""
import json
import logging
import os
import re
import tempfile
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path

from hotline_scraper.config import DOCUMENT_ID_PATTERN
from hotline_scraper.errors import PersistenceError

logger = logging.getLogger(__name__)

_DOCUMENT_ID_RE = re.compile(DOCUMENT_ID_PATTERN)

# Field names written by the earlier JavaScript tool; read for backwards compatibility
_LEGACY_RECORD_FIELDS = {"processedAt": "completed_at", "urlsProcessed": "documents_discovered"}


@dataclass(frozen=True)
class WorkUnit:
    """One (year, make, model, engine) leaf. Identity is the four label strings, exactly as reported."""

    year: str
    make: str
    model: str
    engine: str
    model_value: str = field(default="", compare=False)
    engine_value: str = field(default="", compare=False)

    @property
    def key(self) -> tuple[str, str, str, str]:
        return (self.year, self.make, self.model, self.engine)

    def __str__(self) -> str:
        return f"{self.year} {self.make} {self.model} {self.engine}"


@dataclass(frozen=True)
class UnitRecord:
    year: str
    make: str
    model: str
    engine: str
    completed_at: str
    documents_discovered: int = 0

    @classmethod
    def for_unit(cls, unit: WorkUnit, documents_discovered: int) -> "UnitRecord":
        return cls(
            year=unit.year,
            make=unit.make,
            model=unit.model,
            engine=unit.engine,
            completed_at=datetime.now(timezone.utc).isoformat(),
            documents_discovered=documents_discovered,
        )

    @classmethod
    def from_dict(cls, raw: dict) -> "UnitRecord":
        """Build from a stored record; unknown fields are ignored, legacy field names are accepted."""
        data = {_LEGACY_RECORD_FIELDS.get(k, k): v for k, v in raw.items()}
        return cls(
            year=str(data.get("year") or ""),
            make=str(data.get("make") or ""),
            model=str(data.get("model") or ""),
            engine=str(data.get("engine") or ""),
            completed_at=str(data.get("completed_at") or ""),
            documents_discovered=int(data.get("documents_discovered") or 0),
        )

    @property
    def key(self) -> tuple[str, str, str, str]:
        return (self.year, self.make, self.model, self.engine)

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class DocumentReference:
    source_locator: str
    document_id: str | None = None
    ordinal: int = 1

    @classmethod
    def from_locator(cls, locator: str, ordinal: int = 1) -> "DocumentReference":
        return cls(source_locator=locator, document_id=extract_document_id(locator), ordinal=ordinal)


@dataclass
class FetchedDocument:
    identifying_text: str
    content: bytes


def extract_document_id(locator: str) -> str | None:
    """HANumber from a document URL, e.g. ...?HANumber=12345 -> "12345". None if absent."""
    match = _DOCUMENT_ID_RE.search(locator or "")
    return match.group(1) if match else None


# --------------- Durable checkpoint logs ---------------
def _read_json_list(path: Path) -> list:
    if not path.exists():
        return []
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        raise PersistenceError(f"Cannot read checkpoint log {path}: {e}") from e
    if not isinstance(data, list):
        raise PersistenceError(f"Checkpoint log {path} is not a JSON array")
    return data


def _write_json_atomic(path: Path, data: list) -> None:
    """Replace path with data as a whole: either the old or the new complete log survives a crash."""
    tmp_name = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            "w", encoding="utf-8", dir=path.parent, prefix=f".{path.name}.", suffix=".tmp", delete=False
        ) as f:
            tmp_name = f.name
            json.dump(data, f, indent=2, ensure_ascii=False)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, path)
        tmp_name = None
    except OSError as e:
        raise PersistenceError(f"Cannot write checkpoint log {path}: {e}") from e
    finally:
        if tmp_name is not None:
            try:
                os.unlink(tmp_name)
            except OSError:
                pass


class CheckpointStore:
    """Two independent JSON logs: visited document ids and completed unit records."""

    def __init__(self, visited_ids_path: Path, unit_records_path: Path):
        self.visited_ids_path = Path(visited_ids_path)
        self.unit_records_path = Path(unit_records_path)
        self._document_ids: list[str] = []
        self._unit_records: list[UnitRecord] = []
        self._loaded = False

    @classmethod
    def from_config(cls, config) -> "CheckpointStore":
        return cls(config.visited_ids_path, config.unit_records_path)

    def load(self) -> tuple[set[str], list[UnitRecord]]:
        """Read both logs. Missing files mean a first run and yield empty collections."""
        ids = [str(i) for i in _read_json_list(self.visited_ids_path)]
        self._document_ids = list(dict.fromkeys(ids))
        records = []
        for raw in _read_json_list(self.unit_records_path):
            if not isinstance(raw, dict):
                raise PersistenceError(f"Malformed unit record in {self.unit_records_path}: {raw!r}")
            records.append(UnitRecord.from_dict(raw))
        self._unit_records = records
        self._loaded = True
        return set(self._document_ids), list(self._unit_records)

    def _ensure_loaded(self) -> None:
        # Appends rewrite the whole file; the on-disk log is the starting point.
        if not self._loaded:
            self.load()

    def append_document_id(self, document_id: str) -> None:
        self._ensure_loaded()
        if document_id in self._document_ids:
            return
        _write_json_atomic(self.visited_ids_path, self._document_ids + [document_id])
        self._document_ids.append(document_id)

    def append_unit_record(self, record: UnitRecord) -> None:
        self._ensure_loaded()
        records = self._unit_records + [record]
        _write_json_atomic(self.unit_records_path, [r.to_dict() for r in records])
        self._unit_records = records


class DeduplicationIndex:
    """In-memory view of the checkpoint logs; every addition is persisted before it becomes visible."""

    def __init__(self, store: CheckpointStore, document_ids: set[str], unit_records: list[UnitRecord]):
        self.store = store
        self._document_ids = set(document_ids)
        self._unit_records = list(unit_records)

    @classmethod
    def from_store(cls, store: CheckpointStore) -> "DeduplicationIndex":
        document_ids, unit_records = store.load()
        logger.info("Loaded %d previously processed HANumbers", len(document_ids))
        logger.info("Loaded %d previously processed models", len(unit_records))
        return cls(store, document_ids, unit_records)

    @property
    def document_count(self) -> int:
        return len(self._document_ids)

    @property
    def unit_count(self) -> int:
        return len(self._unit_records)

    def has_document(self, document_id: str | None) -> bool:
        return document_id is not None and document_id in self._document_ids

    def has_unit(self, unit_or_year, make: str | None = None, model: str | None = None, engine: str | None = None) -> bool:
        if isinstance(unit_or_year, (WorkUnit, UnitRecord)):
            key = unit_or_year.key
        else:
            key = (unit_or_year, make, model, engine)
        return any(r.key == key for r in self._unit_records)

    def record_document(self, document_id: str) -> None:
        if document_id in self._document_ids:
            return
        self.store.append_document_id(document_id)
        self._document_ids.add(document_id)

    def record_unit(self, record: UnitRecord) -> None:
        self.store.append_unit_record(record)
        self._unit_records.append(record)
