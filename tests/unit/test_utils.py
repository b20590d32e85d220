import json
import logging
from datetime import datetime
from unittest import mock

import pytest

from event_scrapers.config import settings
from event_scrapers.utils import save_to_json_file, setup_logger


@pytest.fixture
def output_dir(tmp_path):
    with mock.patch.object(settings.file_outputs, "base_output_directory", tmp_path):
        yield tmp_path


def test_fixed_filename_is_overwritten(output_dir):
    save_to_json_file([{"Title": "Primeiro"}], "sympla_events", sub_folder="sympla", filename="events.json")
    path = save_to_json_file([], "sympla_events", sub_folder="sympla", filename="events.json")

    assert path == output_dir / "sympla" / "events.json"
    assert json.loads(path.read_text(encoding="utf-8")) == []


def test_timestamped_filename_and_unicode(output_dir):
    path = save_to_json_file({"Title": "Forró", "when": datetime(2024, 12, 16, 22, 0)}, "sympla_events")

    assert path.parent == output_dir / "sympla_events"
    assert path.name.startswith("sympla_events_")
    text = path.read_text(encoding="utf-8")
    assert "Forró" in text
    assert json.loads(text)["when"] == "2024-12-16T22:00:00"


def test_disabled_json_output_returns_none(output_dir):
    with mock.patch.object(settings.file_outputs, "enable_json_output", False):
        assert save_to_json_file([{"Title": "x"}], "sympla_events") is None
    assert not any(output_dir.iterdir())


def test_setup_logger_is_cached_and_isolated(tmp_path):
    with mock.patch.object(settings.file_outputs, "log_output_directory", tmp_path):
        logger = setup_logger("TestUtilsLogger", "test_utils_run", level="DEBUG")
        assert setup_logger("TestUtilsLogger", "test_utils_run") is logger
    assert logger.level == logging.DEBUG
    assert logger.propagate is False
    assert any(p.name.startswith("test_utils_run_") for p in tmp_path.iterdir())
