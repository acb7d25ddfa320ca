"""Layered configuration: defaults, JSON file, environment, explicit overrides."""

from __future__ import annotations

import copy
import json
import logging
import os
from typing import Any, Callable, Dict, Mapping, MutableMapping, Optional, Tuple

from .errors import ConfigError


LOGGER = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "axon.json"

DEFAULT_CONFIG: Dict[str, Dict[str, Any]] = {
    "llm": {
        "api_key": "",
        "base_url": "http://localhost:1234/v1",
        "model": "qwen/qwen3-4b-2507",
        "embedding_model": "text-embedding-nomic-embed-text-v1.5",
        "temperature": 0.7,
        "max_tokens": None,
        "request_timeout": 300.0,
        "provider": "lmstudio",
    },
    "context": {
        "max_context_tokens": 4096,
        "buffer_tokens": 3000,
    },
    "workspace": {
        "decay_rate": 0.95,
        "activation_threshold": 7.0,
        "base_activation_energy": 1.0,
        "max_resonance_factor": 2.0,
    },
    "orchestrator": {
        "max_cycles": 10,
        "broadcast_threshold": 10.0,
        "max_workers": None,
    },
    "vector_store": {
        "enabled": False,
        "path": "data/vector_store",
        "dimensions": 768,
        "space": "cosine",
    },
    "logging": {
        "level": "INFO",
        "path": "runtime/logs/axon.log",
    },
}

# env var -> (section, key, caster)
_ENV_OVERRIDES: Dict[str, Tuple[str, str, Callable[[str], Any]]] = {
    "AXON_LLM_BASE_URL": ("llm", "base_url", str),
    "AXON_LLM_API_KEY": ("llm", "api_key", str),
    "AXON_LLM_MODEL": ("llm", "model", str),
    "AXON_EMBEDDING_MODEL": ("llm", "embedding_model", str),
    "AXON_MAX_CYCLES": ("orchestrator", "max_cycles", int),
    "AXON_LOG_LEVEL": ("logging", "level", str),
    "AXON_LOG_PATH": ("logging", "path", str),
}


def _merge_section(base: MutableMapping[str, Any], section: str, values: Any) -> None:
    if section not in base:
        raise ConfigError(f"Unknown configuration section: {section!r}")
    if values is None:
        return
    if not isinstance(values, Mapping):
        raise ConfigError(f"Configuration section {section!r} must be a mapping")
    base[section].update(values)


def create_config(overrides: Optional[Mapping[str, Any]] = None) -> Dict[str, Dict[str, Any]]:
    """Return a full configuration with ``overrides`` merged onto the defaults."""
    cfg = copy.deepcopy(DEFAULT_CONFIG)
    for section, values in (overrides or {}).items():
        _merge_section(cfg, section, values)
    return cfg


def _apply_env(cfg: MutableMapping[str, Any], environ: Mapping[str, str]) -> None:
    for name, (section, key, caster) in _ENV_OVERRIDES.items():
        raw = environ.get(name)
        if raw is None or not raw.strip():
            continue
        try:
            cfg[section][key] = caster(raw.strip())
        except ValueError:
            LOGGER.warning("Ignoring invalid value for %s: %r", name, raw)


def _read_json(path: str) -> Mapping[str, Any]:
    with open(path, "r", encoding="utf-8") as fh:
        data = json.load(fh)
    if not isinstance(data, Mapping):
        raise ConfigError(f"Configuration file {path!r} must contain a JSON object")
    return data


def load_config(
    path: Optional[str] = None,
    overrides: Optional[Mapping[str, Any]] = None,
    *,
    environ: Optional[Mapping[str, str]] = None,
) -> Dict[str, Dict[str, Any]]:
    """Load configuration from *path* (default ``axon.json`` if present).

    An explicit *path* that does not exist is an error; the implicit default
    file is optional.
    """
    cfg = create_config()
    candidate = path or DEFAULT_CONFIG_PATH
    if os.path.exists(candidate):
        try:
            file_values = _read_json(candidate)
        except json.JSONDecodeError as exc:
            raise ConfigError(f"Invalid JSON in {candidate!r}: {exc}", cause=exc) from exc
        for section, values in file_values.items():
            _merge_section(cfg, section, values)
        LOGGER.debug("Configuration loaded from %s", candidate)
    elif path is not None:
        raise ConfigError(f"Configuration file not found: {path!r}")

    _apply_env(cfg, os.environ if environ is None else environ)
    for section, values in (overrides or {}).items():
        _merge_section(cfg, section, values)
    validate_config(cfg)
    return cfg


def validate_config(cfg: Mapping[str, Any]) -> None:
    ws = cfg.get("workspace", {})
    orch = cfg.get("orchestrator", {})
    ctx = cfg.get("context", {})
    try:
        decay = float(ws.get("decay_rate"))
        threshold = float(ws.get("activation_threshold"))
        base = float(ws.get("base_activation_energy"))
        resonance = float(ws.get("max_resonance_factor"))
        cycles = int(orch.get("max_cycles"))
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid numeric configuration value: {exc}", cause=exc) from exc

    if not 0.0 < decay <= 1.0:
        raise ConfigError("workspace.decay_rate must be in (0, 1]")
    if threshold <= 0.0:
        raise ConfigError("workspace.activation_threshold must be > 0")
    if base < 0.0:
        raise ConfigError("workspace.base_activation_energy must be >= 0")
    if resonance < 0.0:
        raise ConfigError("workspace.max_resonance_factor must be >= 0")
    if cycles < 0:
        raise ConfigError("orchestrator.max_cycles must be >= 0")
    workers = orch.get("max_workers")
    if workers is not None and int(workers) < 1:
        raise ConfigError("orchestrator.max_workers must be >= 1 when set")
    max_ctx = ctx.get("max_context_tokens")
    if max_ctx is not None and int(max_ctx) < 0:
        raise ConfigError("context.max_context_tokens must be >= 0")


__all__ = [
    "DEFAULT_CONFIG",
    "DEFAULT_CONFIG_PATH",
    "create_config",
    "load_config",
    "validate_config",
]
