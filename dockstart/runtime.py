from logging import getLogger
from os.path import exists
from typing import Optional

from docker import DockerClient
from docker.errors import APIError, DockerException, NotFound
from requests.exceptions import RequestException

from .config import Settings
from .engine import ContainerRecord, parse_restart_policy
from .gate import CheckGroup, ReadinessCheck
from .utils import safe_get

LOG = getLogger(__name__)


def socket_path(docker_host: str) -> Optional[str]:
    if docker_host.startswith("unix://"):
        path = docker_host[len("unix://"):]
        return path if path.startswith("/") else "/" + path
    return None


def record_from_attrs(attrs: dict) -> ContainerRecord:
    name = (safe_get(attrs, "Name", "") or "").lstrip("/")
    policy_name = safe_get(safe_get(attrs, "HostConfig", {}).get("RestartPolicy"), "Name", "")
    state = safe_get(attrs, "State", {})
    exit_code = state.get("ExitCode")
    if isinstance(exit_code, bool) or not isinstance(exit_code, int):
        exit_code = None
    return ContainerRecord(
        name=name,
        restart_policy=parse_restart_policy(policy_name),
        policy_name=policy_name or "no",
        is_running=bool(state.get("Running")),
        last_exit_code=exit_code,
    )


class DockerRuntime:
    def __init__(self, settings: Settings):
        self.settings = settings
        self._client: Optional[DockerClient] = None

    @property
    def client(self) -> DockerClient:
        if self._client is None:
            self._client = DockerClient(base_url=self.settings.docker_host)
        return self._client

    def endpoint_present(self) -> bool:
        path = socket_path(self.settings.docker_host)
        if path is None:
            return True
        return exists(path)

    def daemon_responds(self) -> bool:
        try:
            return bool(self.client.ping())
        except (DockerException, RequestException) as error:
            LOG.debug("Docker daemon at %s not responding: %s", self.settings.docker_host, error)
            self._client = None
            return False

    def metadata_available(self) -> bool:
        try:
            listing = self.client.api.containers(all=True, limit=1)
        except (DockerException, RequestException) as error:
            LOG.debug("Container metadata not available: %s", error)
            return False
        return isinstance(listing, list)

    def readiness_groups(self) -> list[CheckGroup]:
        return [
            CheckGroup(
                "docker",
                [
                    ReadinessCheck("docker endpoint", self.endpoint_present),
                    ReadinessCheck("docker daemon", self.daemon_responds),
                ],
            ),
            CheckGroup(
                "metadata",
                [ReadinessCheck("container metadata", self.metadata_available)],
            ),
        ]

    def list_containers(self) -> list[ContainerRecord]:
        records: list[ContainerRecord] = []
        for container in self.client.containers.list(all=True, ignore_removed=True):
            records.append(record_from_attrs(container.attrs))
        return records

    def start(self, name: str) -> bool:
        try:
            self.client.api.start(name)
        except NotFound as error:
            LOG.error("Container %s disappeared before start: %s", name, error)
            return False
        except (APIError, DockerException, RequestException) as error:
            LOG.error("Failed to start %s: %s", name, error)
            return False
        return True
