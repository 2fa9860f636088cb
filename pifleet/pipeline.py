from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Protocol, Sequence

from .context import RunContext
from .record import AuditRecord

logger = logging.getLogger(__name__)


class Step(Protocol):
    """A single idempotent restore step."""

    step_id: str
    destructive: bool

    def run(self, ctx: RunContext, record: AuditRecord) -> None:
        ...


@dataclass(frozen=True)
class PipelineResult:
    ran_steps: List[str]
    failed_steps: List[str]
    skipped_steps: List[str]


def run_pipeline(
    *,
    ctx: RunContext,
    record: AuditRecord,
    steps: Sequence[Step],
    start_at: Optional[str] = None,
    stop_after: Optional[str] = None,
) -> PipelineResult:
    """Run steps in order.

    A step that raises is logged and the run moves on; restoring is partial by
    nature and the operator reads the log to see what did not apply.
    """

    known = {s.step_id for s in steps}
    for name, value in (("start_at", start_at), ("stop_after", stop_after)):
        if value is not None and value not in known:
            raise ValueError(f"Unknown step id for {name}: {value} (known: {', '.join(sorted(known))})")

    ran: List[str] = []
    failed: List[str] = []
    skipped: List[str] = []

    started = start_at is None
    stopped = False

    for step in steps:
        if not started and step.step_id == start_at:
            started = True
        if not started or stopped:
            skipped.append(step.step_id)
            continue

        if getattr(step, "destructive", False):
            logger.warning("Running DESTRUCTIVE step %s", step.step_id)
        else:
            logger.info("Running step %s", step.step_id)

        try:
            step.run(ctx, record)
            ran.append(step.step_id)
        except Exception:
            logger.exception("Step %s failed; continuing", step.step_id)
            failed.append(step.step_id)

        if stop_after is not None and step.step_id == stop_after:
            logger.info("Stopping after %s", stop_after)
            stopped = True

    return PipelineResult(ran_steps=ran, failed_steps=failed, skipped_steps=skipped)
