import json
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from Axon_Cognitive.core.config import DEFAULT_CONFIG, create_config, load_config  # noqa: E402
from Axon_Cognitive.core.errors import ConfigError  # noqa: E402


def test_create_config_merges_overrides_without_touching_defaults():
    cfg = create_config({"workspace": {"decay_rate": 0.8}})

    assert cfg["workspace"]["decay_rate"] == 0.8
    assert cfg["workspace"]["activation_threshold"] == 7.0
    assert DEFAULT_CONFIG["workspace"]["decay_rate"] == 0.95


def test_create_config_rejects_unknown_section():
    with pytest.raises(ConfigError):
        create_config({"telepathy": {"enabled": True}})


def test_load_config_layers_file_env_and_overrides(tmp_path):
    path = tmp_path / "axon.json"
    path.write_text(
        json.dumps({"llm": {"model": "from-file"}, "orchestrator": {"max_cycles": 3}}),
        encoding="utf-8",
    )
    env = {"AXON_LLM_MODEL": "from-env", "AXON_MAX_CYCLES": "4"}

    cfg = load_config(str(path), {"orchestrator": {"max_cycles": 5}}, environ=env)

    assert cfg["llm"]["model"] == "from-env"
    assert cfg["orchestrator"]["max_cycles"] == 5


def test_invalid_env_value_is_ignored(tmp_path):
    cfg = load_config(str(_write(tmp_path, {})), environ={"AXON_MAX_CYCLES": "many"})

    assert cfg["orchestrator"]["max_cycles"] == 10


def test_missing_explicit_file_is_an_error(tmp_path):
    with pytest.raises(ConfigError):
        load_config(str(tmp_path / "nope.json"), environ={})


def test_invalid_json_is_an_error(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{not json", encoding="utf-8")

    with pytest.raises(ConfigError):
        load_config(str(path), environ={})


def test_validation_rejects_out_of_range_values(tmp_path):
    with pytest.raises(ConfigError):
        load_config(str(_write(tmp_path, {"workspace": {"decay_rate": 1.5}})), environ={})
    with pytest.raises(ConfigError):
        load_config(str(_write(tmp_path, {"orchestrator": {"max_workers": 0}})), environ={})


def _write(tmp_path, data):
    path = tmp_path / "cfg.json"
    path.write_text(json.dumps(data), encoding="utf-8")
    return path
