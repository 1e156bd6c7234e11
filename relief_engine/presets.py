"""Scene presets carrying per-scene relief defaults."""

from __future__ import annotations

from dataclasses import replace
from typing import Dict

from relief_engine.config import ReliefParams


SCENE_PRESETS: Dict[str, Dict[str, object]] = {
    # Classic line-art relief on a plate.
    "relief": {"depth": 5.0, "base_height": 3.0},
    # Small cut-out charm; enclosed bright regions become the ring hole.
    "keychain": {"depth": 1.0, "base_height": 2.0, "cutout": True},
    "fridgeMagnet": {"depth": 1.5, "base_height": 2.0, "cutout": True},
    # Dark areas thick, bright areas thin.
    "lithophane": {
        "depth": 3.0,
        "base_height": 0.8,
        "inverted": True,
        "resolution": 192,
    },
    # Printed mirror-image so the impression reads correctly.
    "stamp": {"depth": 4.0, "base_height": 5.0, "mirrored": True},
}


def preset_names() -> list:
    """Return the available preset names in declaration order."""
    return list(SCENE_PRESETS.keys())


def params_for_preset(name: str, **overrides: object) -> ReliefParams:
    """
    Build relief parameters for a named scene preset.

    Args:
        name: Preset name (see SCENE_PRESETS)
        **overrides: ReliefParams fields to override; None values are ignored

    Returns:
        Validated ReliefParams
    """
    if name not in SCENE_PRESETS:
        raise ValueError(
            f"Unknown preset '{name}'; expected one of {preset_names()}"
        )
    params = replace(ReliefParams(), **SCENE_PRESETS[name])
    explicit = {key: value for key, value in overrides.items() if value is not None}
    if explicit:
        params = replace(params, **explicit)
    params.validate()
    return params
