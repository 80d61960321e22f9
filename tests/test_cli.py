import pytest
from docker.errors import DockerException

import dockstart.__main__ as main_mod
from dockstart.config import Settings
from dockstart.gate import CheckGroup, ReadinessCheck
from tests.conftest import make_record


class FakeRuntime:
    def __init__(self, settings, docker_ready=True, metadata_ready=True, containers=None, list_error=None):
        self.settings = settings
        self.docker_ready = docker_ready
        self.metadata_ready = metadata_ready
        self.containers = containers or []
        self.list_error = list_error
        self.listed = False
        self.started: list[str] = []

    def readiness_groups(self):
        return [
            CheckGroup("docker", [ReadinessCheck("docker daemon", lambda: self.docker_ready)]),
            CheckGroup("metadata", [ReadinessCheck("container metadata", lambda: self.metadata_ready)]),
        ]

    def list_containers(self):
        self.listed = True
        if self.list_error is not None:
            raise self.list_error
        return self.containers

    def start(self, name):
        self.started.append(name)
        return True


@pytest.fixture
def patched_main(monkeypatch, settings: Settings):
    state = {"runtime": None, "options": {}, "notified": []}

    def build_runtime(cfg):
        state["runtime"] = FakeRuntime(cfg, **state["options"])
        return state["runtime"]

    monkeypatch.setattr(main_mod, "load_settings", lambda: settings)
    monkeypatch.setattr(main_mod, "configure_logging", lambda *args, **kwargs: None)
    monkeypatch.setattr(main_mod, "DockerRuntime", build_runtime)
    monkeypatch.setattr(main_mod, "notify_summary", lambda cfg, summary: state["notified"].append(summary))
    monkeypatch.setattr(main_mod, "notify_gate_failure", lambda cfg, result: state["notified"].append(result))
    return state


def test_parse_args_maps_flags(settings: Settings):
    parsed = main_mod.parse_args(
        [
            "--retry",
            "--force",
            "--retry-interval", "2",
            "--max-wait", "90",
            "--log-file", "/tmp/custom.log",
            "--log-max-size", "2048",
            "--no-log",
            "--log-level", "debug",
            "--docker-host", "tcp://docker:2375",
            "--pause", "0",
        ],
        settings,
    )
    assert parsed.retry is True
    assert parsed.force is True
    assert parsed.retry_interval == 2.0
    assert parsed.max_wait == 90.0
    assert parsed.log_file == "/tmp/custom.log"
    assert parsed.log_max_bytes == 2048
    assert parsed.log_enabled is False
    assert parsed.log_level == "DEBUG"
    assert parsed.docker_host == "tcp://docker:2375"
    assert parsed.pause_seconds == 0.0


def test_parse_args_keeps_defaults(settings: Settings):
    assert main_mod.parse_args([], settings) == settings


def test_parse_args_can_disable_env_defaults(settings: Settings):
    defaults = Settings(**{**settings.__dict__, "retry": True, "force": True})
    parsed = main_mod.parse_args(["--no-retry", "--no-force"], defaults)
    assert parsed.retry is False
    assert parsed.force is False


@pytest.mark.parametrize("argv", [
    ["--bogus"],
    ["extra"],
    ["--max-wait", "soon"],
    ["--retry-interval", "-1"],
    ["--log-max-size", "0"],
    ["--log-level", "chatty"],
])
def test_unrecognized_input_exits_with_one(settings: Settings, argv):
    with pytest.raises(SystemExit) as exc_info:
        main_mod.parse_args(argv, settings)
    assert exc_info.value.code == 1


def test_main_gate_failure_skips_enumeration(patched_main):
    patched_main["options"] = {"docker_ready": False}
    assert main_mod.main([]) == 1
    assert patched_main["runtime"].listed is False
    assert patched_main["notified"][0].group == "docker"


def test_main_metadata_failure_is_fatal(patched_main):
    patched_main["options"] = {"metadata_ready": False}
    assert main_mod.main([]) == 1
    assert patched_main["runtime"].listed is False


def test_main_with_no_containers(patched_main, caplog):
    caplog.set_level("INFO")
    assert main_mod.main([]) == 0
    assert patched_main["runtime"].listed is True
    assert patched_main["notified"][0].total == 0
    assert any("No containers found" in message for message in caplog.messages)
    assert any("No containers with restart policy" in message for message in caplog.messages)


def test_main_starts_eligible_containers(patched_main):
    patched_main["options"] = {
        "containers": [
            make_record("web", "always"),
            make_record("db", "unless-stopped", exit_code=0),
        ]
    }
    assert main_mod.main(["--force"]) == 0
    assert patched_main["runtime"].started == ["web", "db"]
    assert patched_main["notified"][0].started == 2


def test_main_enumeration_failure(patched_main, caplog):
    patched_main["options"] = {"list_error": DockerException("boom")}
    assert main_mod.main([]) == 1
    assert any("Failed to list containers" in message for message in caplog.messages)
