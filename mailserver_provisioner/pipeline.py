from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Protocol, Sequence

from .context import ProvisioningContext

logger = logging.getLogger(__name__)


class Step(Protocol):
    """A single provisioning step.

    `condition` is evaluated by the runner right before the step; a False
    result skips the step. `run` performs the side effects and raises on
    any failure.
    """

    step_id: str

    def condition(self, ctx: ProvisioningContext) -> bool:
        ...

    def run(self, ctx: ProvisioningContext) -> None:
        ...


class BaseStep:
    step_id = ""

    def condition(self, ctx: ProvisioningContext) -> bool:
        return True

    def run(self, ctx: ProvisioningContext) -> None:
        raise NotImplementedError


def _always(ctx: ProvisioningContext) -> bool:
    return True


@dataclass(frozen=True)
class FunctionStep:
    """Adapter for steps written as plain functions."""

    step_id: str
    action: Callable[[ProvisioningContext], None]
    when: Callable[[ProvisioningContext], bool] = _always

    def condition(self, ctx: ProvisioningContext) -> bool:
        return bool(self.when(ctx))

    def run(self, ctx: ProvisioningContext) -> None:
        self.action(ctx)


@dataclass(frozen=True)
class PipelineResult:
    ran_steps: List[str]
    skipped_steps: List[str]
    planned_steps: List[str] = field(default_factory=list)
    decisions: Dict[str, Any] = field(default_factory=dict)


class StepFailure(RuntimeError):
    def __init__(
        self,
        step_id: str,
        cause: BaseException,
        *,
        ran_steps: Sequence[str] = (),
        skipped_steps: Sequence[str] = (),
    ) -> None:
        self.step_id = step_id
        self.cause = cause
        self.ran_steps = list(ran_steps)
        self.skipped_steps = list(skipped_steps)
        super().__init__(f"Step {step_id} failed: {cause}")


def _check_step_ids(steps: Sequence[Step], start_at: Optional[str], stop_after: Optional[str]) -> None:
    ids = [s.step_id for s in steps]
    dupes = sorted({i for i in ids if ids.count(i) > 1})
    if dupes:
        raise ValueError(f"Duplicate step ids: {', '.join(dupes)}")
    for name, value in (("start_at", start_at), ("stop_after", stop_after)):
        if value is not None and value not in ids:
            raise ValueError(f"{name}: unknown step {value}")


def run_pipeline(
    *,
    ctx: ProvisioningContext,
    steps: Sequence[Step],
    start_at: Optional[str] = None,
    stop_after: Optional[str] = None,
    dry_run: bool = False,
) -> PipelineResult:
    """Run steps strictly in order.

    The first failure aborts the run with StepFailure; later steps are
    never started and earlier side effects are left in place. With
    dry_run, conditions are evaluated but no step runs.
    """

    _check_step_ids(steps, start_at, stop_after)

    ran: List[str] = []
    skipped: List[str] = []
    planned: List[str] = []

    started = start_at is None

    for step in steps:
        if not started:
            if step.step_id == start_at:
                started = True
            else:
                continue

        try:
            wanted = step.condition(ctx)
            if not wanted:
                logger.debug("Skipping step %s (condition not met)", step.step_id)
                skipped.append(step.step_id)
            elif dry_run:
                logger.info("Would run step %s", step.step_id)
                planned.append(step.step_id)
            else:
                logger.info("Running step %s", step.step_id)
                step.run(ctx)
                ran.append(step.step_id)
        except Exception as e:
            logger.error("Step %s failed: %s", step.step_id, e)
            raise StepFailure(step.step_id, e, ran_steps=ran, skipped_steps=skipped) from e

        if stop_after is not None and step.step_id == stop_after:
            logger.info("Stopping after %s", stop_after)
            break

    return PipelineResult(
        ran_steps=ran,
        skipped_steps=skipped,
        planned_steps=planned,
        decisions=dict(ctx.decisions),
    )
