"""Ordered multi-entity persistence with individually observable steps.

Pipeline, segment and coordinate are separate remote resources, so a logical
topology edit is a list of independent calls. A ``Saga`` runs them in order,
records each outcome, and raises ``PartialCommitError`` when any step failed.
There is no rollback; ``retry_failed`` re-runs only the failures.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from .errors import PartialCommitError, TopologyCoreError

logger = logging.getLogger(__name__)


@dataclass
class SagaStep:
    entity: str
    action: str
    entity_id: int | None
    run: Callable[[], Awaitable[Any]]
    stop_on_failure: bool = False


@dataclass
class StepOutcome:
    entity: str
    action: str
    entity_id: int | None
    succeeded: bool
    result: Any = None
    error: str | None = None

    @property
    def reference(self) -> str:
        ident = self.entity_id if self.entity_id is not None else "new"
        return f"{self.action} {self.entity} {ident}"


@dataclass
class Saga:
    name: str
    steps: list[SagaStep] = field(default_factory=list)
    outcomes: list[StepOutcome] = field(default_factory=list)

    def add(
        self,
        entity: str,
        action: str,
        entity_id: int | None,
        run: Callable[[], Awaitable[Any]],
        stop_on_failure: bool = False,
    ) -> None:
        """Queue a step. ``stop_on_failure`` skips the rest when this one fails."""
        self.steps.append(SagaStep(entity, action, entity_id, run, stop_on_failure))

    @property
    def failed(self) -> list[StepOutcome]:
        return [o for o in self.outcomes if not o.succeeded]

    async def run(self) -> list[StepOutcome]:
        """Run every queued step in order.

        Raises:
            PartialCommitError: if at least one step failed or was skipped.
        """
        self.outcomes = await self._execute(self.steps)
        self._raise_if_failed()
        return self.outcomes

    async def retry_failed(self) -> list[StepOutcome]:
        """Re-run only the steps that failed last time, keeping earlier successes."""
        indexes = [i for i, o in enumerate(self.outcomes) if not o.succeeded]
        retried = await self._execute([self.steps[i] for i in indexes])
        for i, outcome in zip(indexes, retried):
            self.outcomes[i] = outcome
        self._raise_if_failed()
        return self.outcomes

    async def _execute(self, steps: list[SagaStep]) -> list[StepOutcome]:
        outcomes: list[StepOutcome] = []
        halted: StepOutcome | None = None
        for step in steps:
            if halted is not None:
                outcomes.append(
                    StepOutcome(
                        step.entity, step.action, step.entity_id, False,
                        error=f"skipped after {halted.reference} failed",
                    )
                )
                continue
            try:
                result = await step.run()
            except TopologyCoreError as exc:
                logger.error("%s: %s %s %s failed: %s", self.name, step.action, step.entity, step.entity_id, exc)
                outcome = StepOutcome(step.entity, step.action, step.entity_id, False, error=str(exc))
                if step.stop_on_failure:
                    halted = outcome
            else:
                logger.debug("%s: %s %s %s ok", self.name, step.action, step.entity, step.entity_id)
                outcome = StepOutcome(step.entity, step.action, step.entity_id, True, result=result)
            outcomes.append(outcome)
        return outcomes

    def _raise_if_failed(self) -> None:
        if self.failed:
            raise PartialCommitError(self.outcomes, saga=self)
        logger.info("%s: committed %d step(s)", self.name, len(self.outcomes))
