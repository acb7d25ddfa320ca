import logging
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from Axon_Cognitive.core.config import load_config  # noqa: E402
from Axon_Cognitive.utils import logging_setup  # noqa: E402


@pytest.fixture
def isolated_root_logger(monkeypatch):
    root = logging.getLogger()
    saved_level = root.level
    monkeypatch.setattr(sys, "excepthook", sys.excepthook)
    monkeypatch.setattr(logging_setup, "_CONFIGURED_PATH", None)
    yield root
    logging_setup.reset_logging()
    logging.captureWarnings(False)
    root.setLevel(saved_level)


def test_configure_logging_writes_to_rotating_file(tmp_path, isolated_root_logger):
    target = tmp_path / "logs" / "axon.log"

    path = logging_setup.configure_logging(str(target), "DEBUG")
    logging.getLogger("Axon_Cognitive.test").debug("cycle %d done", 3)
    for handler in isolated_root_logger.handlers:
        handler.flush()

    assert path == target
    assert "cycle 3 done" in target.read_text(encoding="utf-8")


def test_second_call_keeps_first_configuration(tmp_path, isolated_root_logger):
    first = logging_setup.configure_logging(str(tmp_path / "a.log"))
    second = logging_setup.configure_logging(str(tmp_path / "b.log"))

    assert first == second
    assert len(isolated_root_logger.handlers) == 2


def test_level_comes_from_loaded_config(tmp_path, monkeypatch, isolated_root_logger):
    monkeypatch.chdir(tmp_path)
    cfg = load_config(environ={"AXON_LOG_LEVEL": "warning"})

    logging_setup.configure_logging(str(tmp_path / "env.log"), cfg["logging"]["level"])

    assert all(h.level == logging.WARNING for h in isolated_root_logger.handlers)


def test_unknown_level_falls_back_to_info(tmp_path, isolated_root_logger):
    logging_setup.configure_logging(str(tmp_path / "odd.log"), "chatty")

    assert all(h.level == logging.INFO for h in isolated_root_logger.handlers)


def test_environment_is_not_read_directly(tmp_path, monkeypatch, isolated_root_logger):
    monkeypatch.setenv("AXON_LOG_LEVEL", "error")

    logging_setup.configure_logging(str(tmp_path / "plain.log"))

    assert all(h.level == logging.INFO for h in isolated_root_logger.handlers)
