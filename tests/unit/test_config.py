"""Unit tests for YAML config loading and logging setup."""
import logging

import pytest
from pydantic import ValidationError

from allocintake.config import AppConfig, LoggingConfig, PipelineConfig, load_config
from allocintake.logging_utils import LOGGER_NAME, setup_logging
from allocintake.models import ColumnRole


def test_defaults_without_file():
    cfg = load_config(None)
    assert isinstance(cfg, AppConfig)
    assert cfg.pipeline.use_content_detection is True
    assert cfg.pipeline.sample_size == 500
    assert cfg.pipeline.header_mappings == {}
    assert cfg.logging.level == "INFO"


def test_yaml_config(tmp_path):
    p = tmp_path / "config.yaml"
    p.write_text(
        """
pipeline:
  use_content_detection: false
  sample_size: 50
  header_mappings:
    Qty: Alloc Qty
    store: Site
catalogs:
  items: data/items.csv
logging:
  level: debug
  logs_dir: logs
""".strip(),
        encoding="utf-8",
    )
    cfg = load_config(p)
    assert cfg.pipeline.use_content_detection is False
    assert cfg.pipeline.sample_size == 50
    assert cfg.pipeline.header_mappings == {ColumnRole.QUANTITY: "Alloc Qty", ColumnRole.STORE: "Site"}
    assert cfg.catalogs.items == "data/items.csv"
    assert cfg.catalogs.stores is None
    assert cfg.logging.level == "DEBUG"


def test_empty_yaml_gives_defaults(tmp_path):
    p = tmp_path / "config.yaml"
    p.write_text("", encoding="utf-8")
    assert load_config(p) == AppConfig()


def test_missing_config_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "missing.yaml")


def test_invalid_values_raise_validation_error():
    with pytest.raises(ValidationError):
        PipelineConfig(sample_size=0)
    with pytest.raises(ValidationError):
        PipelineConfig(header_mappings={"warehouse": "X"})
    with pytest.raises(ValidationError):
        LoggingConfig(level="LOUD")


def test_pipeline_config_is_frozen():
    cfg = PipelineConfig()
    with pytest.raises(ValidationError):
        cfg.sample_size = 10


def test_setup_logging_console_and_file(tmp_path):
    logger = setup_logging(LoggingConfig(level="DEBUG", logs_dir=str(tmp_path / "logs")))
    assert logger.name == LOGGER_NAME
    assert logger.level == logging.DEBUG
    assert len(logger.handlers) == 2
    logger.info("hello")
    for h in logger.handlers:
        h.flush()
    assert "hello" in (tmp_path / "logs" / "allocintake.log").read_text(encoding="utf-8")

    # Re-initialising resets handlers instead of stacking them
    logger = setup_logging(LoggingConfig())
    assert len(logger.handlers) == 1
