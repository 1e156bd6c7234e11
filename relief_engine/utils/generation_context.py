"""Run context and structured logging for relief builds."""

from __future__ import annotations

import contextlib
from dataclasses import dataclass, field
from datetime import datetime, timezone
import json
import time
import uuid
from typing import Any, Dict, Iterator, List, Optional, TYPE_CHECKING

from relief_engine.utils.progress import progress_print

if TYPE_CHECKING:
    from relief_engine.config import ReliefConfig


SCHEMA_VERSION = "relief_manifest_v1"
_VALID_LEVELS = {"debug", "info", "warning", "error"}


@dataclass
class StageTiming:
    """Timing information for a pipeline stage."""

    stage: str
    elapsed_ms: float
    started_utc: str

    def to_dict(self) -> Dict[str, object]:
        """Return a JSON-serializable dict."""
        return {
            "stage": self.stage,
            "elapsed_ms": self.elapsed_ms,
            "started_utc": self.started_utc,
        }


@dataclass
class GenerationContext:
    """Execution context capturing timings, log events and manifest metadata."""

    run_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    source: Optional[str] = None
    quiet: bool = False
    created_utc: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )
    schema_version: str = SCHEMA_VERSION
    stages: List[StageTiming] = field(default_factory=list)
    logs: List[Dict[str, object]] = field(default_factory=list)
    config: Optional["ReliefConfig"] = None

    def log(self, level: str, message: str, **fields: Any) -> str:
        """Emit a structured log line tagged with the current run_id."""
        if level not in _VALID_LEVELS:
            raise ValueError(f"level must be one of {sorted(_VALID_LEVELS)}")
        ordered_fields = " ".join(f"{key}={fields[key]}" for key in sorted(fields))
        line = f"[relief] run_id={self.run_id} level={level} msg={message}"
        if ordered_fields:
            line = f"{line} {ordered_fields}"
        if not self.quiet:
            progress_print(line)
        self.logs.append({"level": level, "message": message, **fields})
        return line

    def events(self, message: str) -> List[Dict[str, object]]:
        """Return logged entries whose message equals `message`."""
        return [entry for entry in self.logs if entry["message"] == message]

    @contextlib.contextmanager
    def time_block(self, stage: str) -> Iterator[None]:
        """Context manager that records elapsed time for a stage."""
        start = time.perf_counter()
        started_utc = datetime.now(timezone.utc).isoformat()
        try:
            yield
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000.0
            self.stages.append(
                StageTiming(stage=stage, elapsed_ms=elapsed_ms, started_utc=started_utc)
            )

    def to_dict(self) -> Dict[str, object]:
        """Return a JSON-serializable dict describing this context."""
        data: Dict[str, object] = {
            "run_id": self.run_id,
            "source": self.source,
            "created_utc": self.created_utc,
            "schema_version": self.schema_version,
        }
        if self.config is not None:
            data["config"] = self.config.to_dict()
        try:
            json.dumps(data)
        except TypeError as exc:
            raise ValueError(
                "GenerationContext contains non-serializable values"
            ) from exc
        return data
