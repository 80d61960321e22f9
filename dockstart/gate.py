from dataclasses import dataclass, field
from enum import Enum
from logging import getLogger
from time import monotonic, sleep
from typing import Callable, Optional

LOG = getLogger(__name__)


class GateStatus(Enum):
    READY = "ready"
    MISSING = "missing"
    TIMED_OUT = "timed_out"


@dataclass(frozen=True)
class ReadinessCheck:
    label: str
    probe: Callable[[], bool]


@dataclass(frozen=True)
class CheckGroup:
    name: str
    checks: list[ReadinessCheck]


@dataclass
class WaitState:
    deadline: float
    elapsed: float = 0.0
    retry_count: int = 0


@dataclass(frozen=True)
class GateResult:
    status: GateStatus
    group: str
    missing: list[str] = field(default_factory=list)
    state: Optional[WaitState] = None

    @property
    def ready(self) -> bool:
        return self.status is GateStatus.READY


def _poll(group: CheckGroup, satisfied: set[str], announce: bool) -> list[str]:
    """Probe unsatisfied checks in order, stopping at the first one that fails.

    Returns the labels still missing, in declared order.
    """
    for index, check in enumerate(group.checks):
        if check.label in satisfied:
            continue
        if not check.probe():
            return [item.label for item in group.checks[index:] if item.label not in satisfied]
        satisfied.add(check.label)
        LOG.info("%s is %savailable", check.label, "now " if announce else "")
    return []


def _timed_out(group: CheckGroup, missing: list[str], state: WaitState) -> GateResult:
    LOG.error(
        "Timed out after %.0fs (%d retries) waiting for %s: %s",
        state.elapsed,
        state.retry_count,
        group.name,
        ", ".join(missing),
    )
    return GateResult(GateStatus.TIMED_OUT, group.name, missing, state)


def await_ready(
    group: CheckGroup,
    retry_enabled: bool,
    retry_interval: float,
    max_wait: float,
    clock: Callable[[], float] = monotonic,
) -> GateResult:
    state = WaitState(deadline=max_wait)
    satisfied: set[str] = set()
    started_at = clock()
    missing = _poll(group, satisfied, announce=False)
    waited_for = missing
    while missing:
        if not retry_enabled:
            LOG.error("%s not available: %s", group.name, ", ".join(missing))
            return GateResult(GateStatus.MISSING, group.name, missing, state)
        state.elapsed = clock() - started_at
        if state.elapsed >= max_wait:
            return _timed_out(group, missing, state)
        sleep(min(retry_interval, max_wait - state.elapsed))
        state.retry_count += 1
        state.elapsed = clock() - started_at
        LOG.info(
            "Waiting for %s (retry %d, %.0fs/%.0fs)",
            missing[0],
            state.retry_count,
            state.elapsed,
            max_wait,
        )
        waited_for = missing
        missing = _poll(group, satisfied, announce=True)
    if state.retry_count and state.elapsed > max_wait:
        # passing only after the deadline still counts as a timeout
        return _timed_out(group, waited_for, state)
    if state.retry_count:
        LOG.info("%s ready after %d retries (%.0fs)", group.name, state.retry_count, state.elapsed)
    else:
        LOG.info("%s ready", group.name)
    return GateResult(GateStatus.READY, group.name, [], state)


def await_groups(
    groups: list[CheckGroup],
    retry_enabled: bool,
    retry_interval: float,
    max_wait: float,
    clock: Callable[[], float] = monotonic,
) -> GateResult:
    # each group gets a fresh clock and the full max_wait budget
    result = GateResult(GateStatus.READY, "", [])
    for group in groups:
        result = await_ready(group, retry_enabled, retry_interval, max_wait, clock=clock)
        if not result.ready:
            return result
    return result
