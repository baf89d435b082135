"""
Tests for the structured log formatters.

Covers:
  - JSON lines carry request and migration context passed via ``extra=``
  - Readable lines append migration context as tags
"""

import json
import logging

import pytest

from fibertrack.middleware.logging_config import JSONFormatter, ReadableFormatter
from fibertrack.services.wave_progress import update_wave_progress


def _record(msg, **extra):
    record = logging.LogRecord("fibertrack.services.wave_progress", logging.INFO, __file__, 10, msg, (), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


@pytest.mark.unit
def test_json_formatter_includes_context():
    line = JSONFormatter().format(
        _record("Wave progress stored", wave_id="w-1", progress=40, source="store", request_id="abc"),
    )
    entry = json.loads(line)
    assert entry["message"] == "Wave progress stored"
    assert entry["wave_id"] == "w-1"
    assert entry["progress"] == 40
    assert entry["request_id"] == "abc"
    assert "task_id" not in entry


@pytest.mark.unit
def test_readable_formatter_appends_tags():
    line = ReadableFormatter().format(_record("Progress refresh completed", task_id="t-9"))
    assert line.endswith("Progress refresh completed [task=t-9]")


def test_wave_progress_logs_carry_wave_id(client, wave, caplog):
    with caplog.at_level(logging.INFO, logger="fibertrack.services.wave_progress"):
        update_wave_progress(wave["id"])
    stored = [r for r in caplog.records if r.getMessage().startswith("Wave progress stored")]
    assert stored and stored[0].wave_id == wave["id"]
    assert stored[0].source == "store"
