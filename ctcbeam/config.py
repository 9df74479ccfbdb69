from __future__ import annotations

from dataclasses import fields
from pathlib import Path
from typing import Any

import yaml

from ctcbeam.decoding.beam import BeamDecoderConfig
from ctcbeam.errors import ConfigurationError


def _deep_merge(a: dict[str, Any], b: dict[str, Any]) -> dict[str, Any]:
    out = dict(a)
    for k, v in b.items():
        if k in out and isinstance(out[k], dict) and isinstance(v, dict):
            out[k] = _deep_merge(out[k], v)
        else:
            out[k] = v
    return out


def load_config(path: str | Path) -> dict[str, Any]:
    """
    Load a YAML config. A top-level `base: other.yaml` (relative to this file)
    is loaded first and this file's keys are merged over it.
    """
    path = Path(path)
    cfg = yaml.safe_load(path.read_text()) or {}
    if not isinstance(cfg, dict):
        raise ConfigurationError(f"Expected a mapping at the top of {path}, got {type(cfg).__name__}")
    if "base" in cfg:
        base = load_config(path.parent / cfg["base"])
        cfg = _deep_merge(base, {k: v for k, v in cfg.items() if k != "base"})
    return cfg


def decoder_config_from_dict(section: dict[str, Any] | None, **overrides: Any) -> BeamDecoderConfig:
    """
    Build a BeamDecoderConfig from the `decoder` section; None-valued overrides are ignored.
    """
    values = dict(section or {})
    values.update({k: v for k, v in overrides.items() if v is not None})
    known = {f.name for f in fields(BeamDecoderConfig)}
    unknown = sorted(set(values) - known)
    if unknown:
        raise ConfigurationError(f"Unknown decoder option(s): {unknown}", expected=sorted(known), actual=unknown)
    cfg = BeamDecoderConfig(**values)
    cfg.validate()
    return cfg
