from __future__ import annotations

import logging

import pytest

from vortexflow import ChunkConfig, InductionConfig, NumbaConfig, get_config, set_config, setup_logging, use_config


def test_chunk_config_validation() -> None:
    with pytest.raises(ValueError):
        ChunkConfig(query_batch=0)
    with pytest.raises(ValueError):
        ChunkConfig(source_batch=-3)
    with pytest.raises(ValueError):
        InductionConfig(numba=True)  # type: ignore[arg-type]


def test_set_config_returns_previous() -> None:
    original = get_config()
    cfg = InductionConfig(numba=NumbaConfig(enabled=True))
    previous = set_config(cfg)
    try:
        assert previous is original
        assert get_config() is cfg
    finally:
        set_config(original)
    assert get_config() is original


def test_use_config_restores_on_error() -> None:
    original = get_config()
    with pytest.raises(RuntimeError):
        with use_config(InductionConfig(chunking=ChunkConfig(query_batch=4))):
            assert get_config().chunking.query_batch == 4
            raise RuntimeError("boom")
    assert get_config() is original


def test_setup_logging_installs_single_handler() -> None:
    setup_logging(logging.DEBUG)
    setup_logging(logging.DEBUG)
    logger = logging.getLogger("vortexflow")
    try:
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 1
    finally:
        logger.handlers.clear()
        logger.setLevel(logging.NOTSET)


def test_setup_logging_routes_module_records_to_file(tmp_path) -> None:
    log_file = tmp_path / "run.log"
    logger = setup_logging(logging.INFO, str(log_file))
    try:
        assert logger is logging.getLogger("vortexflow")
        assert len(logger.handlers) == 2
        logging.getLogger("vortexflow.boundary").info("shedding")
        logging.getLogger("vortexflow.sheets").debug("below threshold")
        for handler in logger.handlers:
            handler.flush()
        text = log_file.read_text(encoding="utf-8")
        assert "vortexflow.boundary - INFO - shedding" in text
        assert "below threshold" not in text
    finally:
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()
        logger.setLevel(logging.NOTSET)
