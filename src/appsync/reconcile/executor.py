"""Run operations concurrently under a parallelism ceiling and collect outcomes."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from appsync.reconcile.operations import Operation

logger = logging.getLogger(__name__)


class MembershipSyncError(Exception):
    """One or more assignment operations failed.

    Every failure is kept in ``errors`` as (operation name, exception).
    """

    def __init__(self, message: str, errors: list[tuple[str, BaseException]]):
        self.message = message
        self.errors = errors
        details = "; ".join(f"{name}: {exc}" for name, exc in errors)
        super().__init__(f"{message}: {details}" if details else message)


@dataclass
class OperationOutcome:
    """Outcome of a single operation. ``error`` is None on success."""

    name: str
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class AggregatedResult:
    """Outcomes of one pass, in the order the operations were given."""

    outcomes: list[OperationOutcome] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return all(o.ok for o in self.outcomes)

    @property
    def succeeded(self) -> list[str]:
        return [o.name for o in self.outcomes if o.ok]

    @property
    def failed(self) -> list[str]:
        return [o.name for o in self.outcomes if not o.ok]

    @property
    def errors(self) -> list[tuple[str, BaseException]]:
        return [(o.name, o.error) for o in self.outcomes if o.error is not None]

    def raise_for_errors(self, message: str) -> None:
        """Raise a single combined error if any operation failed."""
        errors = self.errors
        if errors:
            raise MembershipSyncError(message, errors)


async def run_operations(
    operations: Sequence[Operation],
    parallelism: int,
) -> AggregatedResult:
    """Run every operation exactly once, at most ``parallelism`` at a time.

    A failing operation never stops the others. Returns once all of them have
    finished.
    """
    if parallelism < 1:
        raise ValueError(f"parallelism must be >= 1, got {parallelism}")

    semaphore = asyncio.Semaphore(parallelism)

    async def run_one(operation: Operation) -> OperationOutcome:
        async with semaphore:
            logger.debug("Running: %s", operation.name)
            try:
                await operation()
            except Exception as e:
                logger.warning("Failed: %s: %s", operation.name, e)
                return OperationOutcome(name=operation.name, error=e)
        return OperationOutcome(name=operation.name)

    outcomes = await asyncio.gather(*(run_one(op) for op in operations))
    return AggregatedResult(outcomes=list(outcomes))
