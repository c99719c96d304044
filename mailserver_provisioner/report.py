from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .pipeline import PipelineResult, StepFailure

logger = logging.getLogger(__name__)


def _detect_format(path: Path) -> str:
    ext = path.suffix.lower().lstrip(".")
    if ext in {"yaml", "yml"}:
        return "yaml"
    # Default to JSON for unknown extensions.
    return "json"


def build_report(
    *,
    pipeline: str,
    architecture: str,
    result: Optional[PipelineResult] = None,
    failure: Optional[StepFailure] = None,
    decisions: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    report: Dict[str, Any] = {
        "pipeline": pipeline,
        "architecture": architecture,
        "ok": failure is None,
    }
    if result is not None:
        report["ran_steps"] = list(result.ran_steps)
        report["skipped_steps"] = list(result.skipped_steps)
        if result.planned_steps:
            report["planned_steps"] = list(result.planned_steps)
    if failure is not None:
        report["ran_steps"] = list(failure.ran_steps)
        report["skipped_steps"] = list(failure.skipped_steps)
        report["failed_step"] = failure.step_id
        report["error"] = str(failure.cause)
        report["error_type"] = type(failure.cause).__name__
    report["decisions"] = dict(decisions if decisions is not None else (result.decisions if result else {}))
    return report


def save_report(path: str, report: Dict[str, Any]) -> None:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)

    if _detect_format(p) == "yaml":
        p.write_text(yaml.safe_dump(report, sort_keys=False), encoding="utf-8")
    else:
        p.write_text(json.dumps(report, indent=2, sort_keys=True) + "\n", encoding="utf-8")
    logger.debug("Wrote run report %s", str(p))


def load_report(path: str) -> Dict[str, Any]:
    p = Path(path)
    text = p.read_text(encoding="utf-8")
    data = yaml.safe_load(text) if _detect_format(p) == "yaml" else json.loads(text)
    if not isinstance(data, dict):
        raise ValueError(f"Report must be an object/dict, got {type(data)}")
    return data
