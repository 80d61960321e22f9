from types import SimpleNamespace
from typing import Callable, Iterable, Optional

import pytest
from docker.errors import APIError

from dockstart import gate
from dockstart.config import Settings
from dockstart.engine import ContainerRecord, parse_restart_policy


class DummyContainer:
    def __init__(
        self,
        name: str,
        policy: str = "always",
        running: bool = False,
        exit_code: Optional[int] = 0,
    ):
        self.name = name
        self.id = f"{name}-id"
        state = {"Running": running, "Status": "running" if running else "exited"}
        if exit_code is not None:
            state["ExitCode"] = exit_code
        self.attrs = {
            "Id": self.id,
            "Name": f"/{name}",
            "HostConfig": {"RestartPolicy": {"Name": policy, "MaximumRetryCount": 0}},
            "State": state,
        }


class DummyAPI:
    def __init__(self):
        self.calls: list = []
        self.fail_start: set[str] = set()
        self.containers_error: Optional[Exception] = None

    def start(self, name):
        if name in self.fail_start:
            raise APIError("start refused")
        self.calls.append(("start", name))

    def containers(self, all=False, limit=-1):
        if self.containers_error is not None:
            raise self.containers_error
        self.calls.append(("containers", all, limit))
        return []


class DummyClient:
    def __init__(self, containers_list: Optional[Iterable] = None):
        self.api = DummyAPI()
        self.ping_error: Optional[Exception] = None
        self.listed = list(containers_list or [])
        self.containers = SimpleNamespace(list=lambda all=False, ignore_removed=False: list(self.listed))

    def ping(self):
        if self.ping_error is not None:
            raise self.ping_error
        return True


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_record(
    name: str,
    policy: str = "always",
    running: bool = False,
    exit_code: Optional[int] = 0,
) -> ContainerRecord:
    return ContainerRecord(
        name=name,
        restart_policy=parse_restart_policy(policy),
        policy_name=policy,
        is_running=running,
        last_exit_code=exit_code,
    )


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        docker_host="unix://test",
        retry=False,
        retry_interval=5.0,
        max_wait=60.0,
        force=False,
        pause_seconds=0.0,
        log_enabled=False,
        log_file=str(tmp_path / "dockstart.log"),
        fallback_log_file=str(tmp_path / "fallback.log"),
        log_max_bytes=1024,
        log_level="INFO",
        notifications=frozenset({"started", "failed", "gate"}),
        pushover_token=None,
        pushover_user=None,
        pushover_api="https://example",
        webhook_url=None,
    )


@pytest.fixture
def fake_clock(monkeypatch) -> FakeClock:
    clock = FakeClock()
    monkeypatch.setattr(gate, "sleep", clock.advance)
    return clock


@pytest.fixture
def dummy_client() -> Callable[..., DummyClient]:
    def _make(containers_list: Optional[Iterable] = None):
        return DummyClient(containers_list=containers_list)
    return _make
