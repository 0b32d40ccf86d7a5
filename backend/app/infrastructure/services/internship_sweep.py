"""
Internship Date Sweep

Moves internships along their calendar: upcoming internships whose start
date has arrived become active, and active internships whose end date has
passed become completed. Transitions go through the WorkflowFacade as the
system actor, so they obey the same table and side effects as user requests.

Selection is by predicate, which makes a run idempotent: running it twice
on the same day transitions nothing the second time, and a batch cut short
by shutdown is picked up on the next tick.
"""

import asyncio
import logging
from datetime import date
from typing import Callable, List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.config.settings import settings
from app.domain.workflow import (
    EntityType,
    InternshipStatus,
    SYSTEM_ACTOR,
    SweepReport,
)
from app.infrastructure.db.repositories import InternshipRepository
from app.infrastructure.exceptions import PlacementWorkflowError
from app.infrastructure.services.workflow_facade import WorkflowFacade, get_workflow_facade


logger = logging.getLogger(__name__)


class InternshipSweep:
    """
    One pass of the internship date sweep.

    Args:
        facade: Facade used to apply each transition
        session_factory: Factory for the read-only selection sessions
            (defaults to the facade's)
        clock: Returns today's date (defaults to the facade's clock)
    """

    def __init__(
        self,
        facade: Optional[WorkflowFacade] = None,
        session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
        clock: Optional[Callable[[], date]] = None,
    ):
        self._facade = facade or get_workflow_facade()
        self._session_factory = session_factory
        self._clock = clock or self._facade.today

    async def _select(self, selector: str, today: date) -> List[UUID]:
        factory = self._session_factory or self._facade.session_factory
        async with factory() as session:
            repo = InternshipRepository(session)
            return await getattr(repo, selector)(today)

    async def _advance(
        self,
        internship_ids: List[UUID],
        target: InternshipStatus,
        succeeded: List[UUID],
        report: SweepReport,
    ) -> None:
        for internship_id in internship_ids:
            try:
                result = await self._facade.request_transition(
                    EntityType.INTERNSHIP,
                    internship_id,
                    target.value,
                    SYSTEM_ACTOR,
                    today=report.run_date,
                )
            except asyncio.CancelledError:
                raise
            except PlacementWorkflowError as e:
                logger.error("Sweep failed to move internship %s to %s: %s", internship_id, target.value, e)
                report.failed.append(internship_id)
                continue
            except Exception:
                logger.exception("Unexpected error moving internship %s to %s", internship_id, target.value)
                report.failed.append(internship_id)
                continue

            if result.is_ok:
                succeeded.append(internship_id)
            else:
                logger.warning(
                    "Sweep skipped internship %s -> %s: %s (%s)",
                    internship_id, target.value, result.reason.value, result.message,
                )
                report.failed.append(internship_id)

    async def run_once(self, today: Optional[date] = None) -> SweepReport:
        """
        Activate due internships, then complete ended ones.

        Args:
            today: Run date (defaults to the clock)

        Returns:
            SweepReport listing activated, completed and failed internships
        """
        run_date = today or self._clock()
        report = SweepReport(run_date=run_date)

        to_activate = await self._select("list_due_for_activation", run_date)
        await self._advance(to_activate, InternshipStatus.ACTIVE, report.activated, report)

        to_complete = await self._select("list_due_for_completion", run_date)
        await self._advance(to_complete, InternshipStatus.COMPLETED, report.completed, report)

        logger.info(
            "Sweep for %s: %d activated, %d completed, %d failed",
            run_date.isoformat(), len(report.activated), len(report.completed), len(report.failed),
        )
        return report


class SweepScheduler:
    """
    Runs the sweep at start-up and then every ``interval`` seconds.

    Scheduled and manual runs share one lock, so runs never overlap.
    """

    def __init__(self, sweep: InternshipSweep, interval: Optional[float] = None):
        self._sweep = sweep
        self._interval = interval or settings.sweep_interval_seconds
        self._lock = asyncio.Lock()
        self._task: Optional[asyncio.Task] = None
        self.last_report: Optional[SweepReport] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def run_now(self, today: Optional[date] = None) -> SweepReport:
        """Run one sweep, waiting for any run already in progress."""
        async with self._lock:
            self.last_report = await self._sweep.run_once(today)
            return self.last_report

    async def _loop(self) -> None:
        while True:
            try:
                await self.run_now()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Internship sweep run failed")
            await asyncio.sleep(self._interval)

    def start(self) -> None:
        """Start the background loop (first run happens immediately)."""
        if self.running:
            return
        self._task = asyncio.create_task(self._loop(), name="internship-sweep")
        logger.info("Internship sweep scheduled every %ss", self._interval)

    async def stop(self) -> None:
        """Cancel the background loop, abandoning an in-flight run."""
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Internship sweep stopped")


# Singleton instance
_sweep_scheduler: Optional[SweepScheduler] = None


def get_sweep_scheduler() -> SweepScheduler:
    """Get the shared sweep scheduler."""
    global _sweep_scheduler
    if _sweep_scheduler is None:
        _sweep_scheduler = SweepScheduler(InternshipSweep())
    return _sweep_scheduler
