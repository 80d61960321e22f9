from dataclasses import dataclass, replace
from enum import Enum
from logging import getLogger
from time import sleep
from typing import Callable, Optional

LOG = getLogger(__name__)


class RestartPolicy(Enum):
    ALWAYS = "always"
    UNLESS_STOPPED = "unless-stopped"
    OTHER = "other"


class Outcome(Enum):
    STARTED = "started"
    ALREADY_RUNNING = "already_running"
    SKIPPED = "skipped"
    FAILED = "failed"


MANAGED_POLICIES = {RestartPolicy.ALWAYS, RestartPolicy.UNLESS_STOPPED}


@dataclass(frozen=True)
class ContainerRecord:
    name: str
    restart_policy: RestartPolicy
    is_running: bool
    last_exit_code: Optional[int] = None
    policy_name: str = ""


@dataclass(frozen=True)
class ContainerDecision:
    name: str
    outcome: Outcome
    reason: str


@dataclass(frozen=True)
class RunSummary:
    started: int = 0
    already_running: int = 0
    skipped: int = 0
    failed: int = 0

    @property
    def total(self) -> int:
        return self.started + self.already_running + self.skipped + self.failed

    def record(self, outcome: Outcome) -> "RunSummary":
        field_name = outcome.value
        return replace(self, **{field_name: getattr(self, field_name) + 1})


def parse_restart_policy(name: Optional[str]) -> RestartPolicy:
    lowered = (name or "").strip().lower()
    if lowered == RestartPolicy.ALWAYS.value:
        return RestartPolicy.ALWAYS
    if lowered == RestartPolicy.UNLESS_STOPPED.value:
        return RestartPolicy.UNLESS_STOPPED
    return RestartPolicy.OTHER


def should_start(record: ContainerRecord, force: bool) -> bool:
    if record.restart_policy is RestartPolicy.ALWAYS:
        return True
    if record.restart_policy is not RestartPolicy.UNLESS_STOPPED:
        return False
    if force:
        return True
    # a non-zero exit reads as a crash, zero or unknown as a deliberate stop
    return record.last_exit_code is not None and record.last_exit_code != 0


def _describe_exit(record: ContainerRecord) -> str:
    if record.last_exit_code is None:
        return "unknown exit code"
    return f"exit code {record.last_exit_code}"


def decide(
    record: ContainerRecord,
    force: bool,
    starter: Callable[[str], bool],
) -> ContainerDecision:
    policy = record.policy_name or record.restart_policy.value
    if record.restart_policy not in MANAGED_POLICIES:
        return ContainerDecision(record.name, Outcome.SKIPPED, f"restart policy '{policy}' is not managed")
    if record.is_running:
        return ContainerDecision(record.name, Outcome.ALREADY_RUNNING, f"already running (policy '{policy}')")
    if not should_start(record, force):
        return ContainerDecision(
            record.name,
            Outcome.SKIPPED,
            f"policy '{policy}' but stopped with {_describe_exit(record)}; use --force to start it",
        )
    if record.restart_policy is RestartPolicy.ALWAYS:
        why = "policy 'always'"
    elif force:
        why = "policy 'unless-stopped', forced"
    else:
        why = f"policy 'unless-stopped' after {_describe_exit(record)}"
    if starter(record.name):
        return ContainerDecision(record.name, Outcome.STARTED, f"started ({why})")
    return ContainerDecision(record.name, Outcome.FAILED, f"start failed ({why})")


def process(
    containers: list[ContainerRecord],
    starter: Callable[[str], bool],
    force: bool,
    pause_seconds: float = 0.0,
) -> RunSummary:
    summary = RunSummary()
    for record in containers:
        decision = decide(record, force, starter)
        summary = summary.record(decision.outcome)
        if decision.outcome is Outcome.FAILED:
            LOG.error("%s: %s", decision.name, decision.reason)
        else:
            LOG.info("%s: %s", decision.name, decision.reason)
        if pause_seconds > 0:
            sleep(pause_seconds)
    return summary


def report_summary(summary: RunSummary) -> None:
    LOG.info(
        "Summary: %d started, %d already running, %d skipped, %d failed (%d total)",
        summary.started,
        summary.already_running,
        summary.skipped,
        summary.failed,
        summary.total,
    )
    if summary.started == 0 and summary.already_running == 0:
        LOG.info("No containers with restart policy 'always' or 'unless-stopped' were found or started")


def describe_summary(summary: RunSummary) -> str:
    lines = [f"Started: {summary.started}", f"Already running: {summary.already_running}"]
    lines.append(f"Skipped: {summary.skipped}")
    lines.append(f"Failed: {summary.failed}")
    return "\n".join(lines)
