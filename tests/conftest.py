"""Shared fixtures: a throwaway crawl configuration and a small scripted catalog."""

from pathlib import Path

import pytest

from hotline_scraper.config import CrawlConfig
from hotline_scraper.models import CheckpointStore
from tests.utils import doc_url


@pytest.fixture
def crawl_config(tmp_path: Path) -> CrawlConfig:
    return CrawlConfig(
        makes=["Honda"],
        year="2020",
        output_dir=tmp_path / "output",
        checkpoint_dir=tmp_path / "state",
        document_delay_sec=0.0,
        keep_browser_open=False,
    )


@pytest.fixture
def store(crawl_config: CrawlConfig) -> CheckpointStore:
    return CheckpointStore.from_config(crawl_config)


@pytest.fixture
def honda_catalog() -> dict:
    """1 make, 2 models with 1 engine each, 3 documents in total."""
    return {
        "Honda": [
            ("101", "Civic", [("1001", "1.5L L4 Turbo", [doc_url("100"), doc_url("101")])]),
            ("102", "Accord", [("1002", "2.0L L4", [doc_url("102")])]),
        ]
    }


@pytest.fixture
def honda_documents() -> dict:
    return {
        doc_url("100"): ("2020 Honda Civic 1.5L!!", "<p>No start</p>"),
        doc_url("101"): ("2020 Honda Civic 1.5L", "<p>Rough idle</p>"),
        doc_url("102"): ("2020 Honda Accord 2.0L", "<p>Check engine light</p>"),
    }
