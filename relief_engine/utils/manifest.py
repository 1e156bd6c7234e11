"""Manifest helpers for recording relief run metadata."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from relief_engine.utils.generation_context import GenerationContext


def _safe_json(value: Any) -> Any:
    """Ensure value is JSON-serializable; fallback to string."""
    try:
        json.dumps(value)
        return value
    except TypeError:
        return str(value)


def build_manifest(
    context: GenerationContext,
    outputs: Optional[Dict[str, Any]] = None,
    warnings: Optional[List[str]] = None,
    errors: Optional[List[str]] = None,
) -> Dict[str, Any]:
    """Build the run manifest payload."""
    manifest = {
        "manifest_version": context.schema_version,
        "run_id": context.run_id,
        "created_utc": context.created_utc or datetime.now(timezone.utc).isoformat(),
        "context": context.to_dict(),
        "stages": [stage.to_dict() for stage in context.stages],
        "events": [_safe_json(entry) for entry in context.logs],
        "outputs": {key: _safe_json(val) for key, val in (outputs or {}).items()},
        "warnings": warnings or [],
        "errors": errors or [],
    }
    return manifest


def write_manifest(path: Union[str, Path], manifest: Dict[str, Any]) -> Path:
    """Write the manifest as indented JSON and return the output path."""
    if not manifest:
        raise ValueError("manifest is required")
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(manifest, indent=2, sort_keys=True), encoding="utf-8")
    return path
