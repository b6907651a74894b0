"""
Two-stage data pipeline: remote provider first, heuristic engine second.

Stage order:
  1. remote     — async adapter call (TomTom, ski proxy, Open-Meteo Marine)
  2. heuristic  — synchronous estimation engine
  3. none       — neither stage produced a record

Adapters report failure by returning None, so the fallback is an explicit
check on the result rather than an exception handler. The outcome names the
stage that produced the record so the widgets can label their data source.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Stage(str, Enum):
    REMOTE = "remote"
    HEURISTIC = "heuristic"
    NONE = "none"


@dataclass(frozen=True)
class StageOutcome(Generic[T]):
    record: T | None
    stage: Stage

    @property
    def ok(self) -> bool:
        return self.record is not None


async def run_two_stage(
    name: str,
    remote: Callable[[], Awaitable[T | None]] | None,
    heuristic: Callable[[], T | None] | None,
) -> StageOutcome[T]:
    """Run `remote`, falling back to `heuristic` when it is absent or yields None.

    Args:
        name:      Label for logging ("traffic:istanbul").
        remote:    Zero-arg coroutine factory, or None to skip the remote stage.
        heuristic: Zero-arg synchronous callable, or None to skip the fallback.
    """
    if remote is not None:
        record = await remote()
        if record is not None:
            return StageOutcome(record=record, stage=Stage.REMOTE)
        logger.info("%s: remote stage produced nothing, trying heuristic", name)

    if heuristic is not None:
        record = heuristic()
        if record is not None:
            return StageOutcome(record=record, stage=Stage.HEURISTIC)

    logger.info("%s: no stage produced a record", name)
    return StageOutcome(record=None, stage=Stage.NONE)
