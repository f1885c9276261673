import logging

import pytest

from nanomaps import config
from nanomaps import log as nlog


def test_env_int_and_float(monkeypatch):
    monkeypatch.setenv("NANOMAPS_TEST_INT", "42")
    monkeypatch.setenv("NANOMAPS_TEST_FLOAT", "2.5")
    assert config.env_int("NANOMAPS_TEST_INT", 1) == 42
    assert config.env_float("NANOMAPS_TEST_FLOAT", 1.0) == 2.5


def test_env_garbage_falls_back(monkeypatch, caplog):
    monkeypatch.setenv("NANOMAPS_TEST_INT", "lots")
    monkeypatch.setenv("NANOMAPS_TEST_FLOAT", "")
    with caplog.at_level(logging.WARNING, logger="nanomaps.config"):
        assert config.env_int("NANOMAPS_TEST_INT", 7) == 7
    assert "NANOMAPS_TEST_INT" in caplog.text
    assert config.env_float("NANOMAPS_TEST_FLOAT", 1.5) == 1.5
    assert config.env_int("NANOMAPS_TEST_UNSET", 3) == 3


@pytest.fixture
def fresh_root(monkeypatch):
    root = logging.getLogger()
    saved = (root.handlers[:], root.level)
    monkeypatch.setattr(nlog, "_CONFIGURED", False)
    yield root
    for h in root.handlers[:]:
        if h not in saved[0]:
            root.removeHandler(h)
            h.close()
    root.setLevel(saved[1])


def test_setup_logging_writes_file_once(fresh_root, tmp_path):
    before = len(fresh_root.handlers)
    nlog.setup_logging("debug", tmp_path / "logs")
    nlog.setup_logging("debug", tmp_path / "logs")
    assert len(fresh_root.handlers) == before + 2
    assert fresh_root.level == logging.DEBUG
    logging.getLogger("nanomaps.test").info("hello")
    for h in fresh_root.handlers:
        h.flush()
    assert "hello" in (tmp_path / "logs" / "nanomaps.log").read_text(encoding="utf-8")


def test_setup_logging_console_only(fresh_root):
    before = len(fresh_root.handlers)
    nlog.setup_logging(logging.WARNING)
    assert len(fresh_root.handlers) == before + 1
