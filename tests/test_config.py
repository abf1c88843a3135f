"""Tests for run configuration: environment defaults, CLI overrides and validation."""

import importlib
from pathlib import Path

import pytest

from hotline_scraper.config import DEFAULT_MAKES, CrawlConfig, load_config
from hotline_scraper.errors import ConfigError


def test_defaults_when_environment_is_empty(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("HOTLINE_MAKES", raising=False)
    monkeypatch.delenv("HOTLINE_YEAR", raising=False)
    config = load_config()
    assert config.makes == DEFAULT_MAKES
    assert config.year == "2020"


def test_makes_and_year_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("HOTLINE_MAKES", "Honda, Toyota,,Ford ")
    monkeypatch.setenv("HOTLINE_YEAR", "2021")
    config = load_config()
    assert config.makes == ["Honda", "Toyota", "Ford"]
    assert config.year == "2021"


def test_explicit_overrides_win(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("HOTLINE_MAKES", "Honda")
    config = load_config(
        makes=["Volvo"],
        year="2019",
        output_dir=tmp_path / "out",
        checkpoint_dir=str(tmp_path / "state"),
        keep_browser_open=False,
    )
    assert config.makes == ["Volvo"]
    assert config.year == "2019"
    assert config.output_dir == tmp_path / "out"
    assert config.visited_ids_path == tmp_path / "state" / "processed_hanumbers.json"
    assert config.unit_records_path == tmp_path / "state" / "processed_models.json"
    assert config.keep_browser_open is False


@pytest.mark.parametrize(
    "kwargs",
    [
        {"makes": []},
        {"makes": ["Honda", " "]},
        {"year": ""},
        {"document_delay_sec": -1.0},
    ],
)
def test_invalid_configuration(kwargs: dict) -> None:
    with pytest.raises(ConfigError):
        CrawlConfig(**kwargs).validate()


def test_dotenv_file_feeds_every_entry_point(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    from hotline_scraper import checkpoint_viewer, config, export

    env_file = tmp_path / ".env"
    env_file.write_text(
        f"HOTLINE_CHECKPOINT_DIR={tmp_path / 'state'}\nHOTLINE_OUTPUT_DIR={tmp_path / 'docs'}\n"
    )
    try:
        with monkeypatch.context() as m:
            m.setenv("HOTLINE_ENV_FILE", str(env_file))
            # set-then-delete so the values written by load_dotenv are removed on exit
            m.setenv("HOTLINE_CHECKPOINT_DIR", "")
            m.setenv("HOTLINE_OUTPUT_DIR", "")
            m.delenv("HOTLINE_CHECKPOINT_DIR")
            m.delenv("HOTLINE_OUTPUT_DIR")
            importlib.reload(config)
            importlib.reload(checkpoint_viewer)
            importlib.reload(export)

            assert config.CHECKPOINT_DIR == tmp_path / "state"
            assert config.OUTPUT_DIR == tmp_path / "docs"
            assert checkpoint_viewer.CHECKPOINT_DIR == tmp_path / "state"
            assert checkpoint_viewer.OUTPUT_DIR == tmp_path / "docs"
            assert export.CHECKPOINT_DIR == tmp_path / "state"
            assert config.load_config(makes=["Honda"]).checkpoint_dir == tmp_path / "state"
    finally:
        importlib.reload(config)
        importlib.reload(checkpoint_viewer)
        importlib.reload(export)
