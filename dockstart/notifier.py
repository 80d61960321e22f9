from http.client import HTTPConnection, HTTPSConnection
from json import dumps
from logging import getLogger
from socket import gethostname
from urllib.parse import urlencode, urlsplit

from .config import Settings
from .engine import RunSummary, describe_summary
from .gate import GateResult, GateStatus

LOG = getLogger(__name__)


def _post(service: str, url: str, body: bytes, content_type: str) -> None:
    endpoint = urlsplit(url)
    if endpoint.scheme == "https":
        connection = HTTPSConnection(endpoint.netloc)
    else:
        connection = HTTPConnection(endpoint.netloc)
    path = endpoint.path or "/"
    if endpoint.query:
        path = f"{path}?{endpoint.query}"

    try:
        connection.request("POST", path, body=body, headers={"Content-Type": content_type})
        response = connection.getresponse()
        if response.status >= 300:
            LOG.warning("%s returned %s: %s", service, response.status, response.reason)
    except OSError as error:
        LOG.warning("Failed to send %s notification: %s", service, error)
    finally:
        connection.close()


def notify_pushover(settings: Settings, title: str, message: str) -> None:
    if settings.pushover_token is None or settings.pushover_user is None:
        LOG.debug("Pushover disabled; missing token or user")
        return
    fields = {
        "token": settings.pushover_token,
        "user": settings.pushover_user,
        "title": title,
        "message": message,
    }
    body = urlencode(fields).encode("ascii")
    _post("Pushover", settings.pushover_api, body, "application/x-www-form-urlencoded")


def notify_webhook(settings: Settings, title: str, message: str) -> None:
    if settings.webhook_url is None:
        LOG.debug("Webhook disabled; missing URL")
        return
    body = dumps({"title": title, "message": message}).encode("utf-8")
    _post("Webhook", settings.webhook_url, body, "application/json")


def _send(settings: Settings, message: str) -> None:
    title = f"dockstart on {gethostname()}"
    notify_pushover(settings, title, message)
    notify_webhook(settings, title, message)


def notify_summary(settings: Settings, summary: RunSummary) -> None:
    wanted = (summary.started and "started" in settings.notifications) or (
        summary.failed and "failed" in settings.notifications
    )
    if not wanted:
        return
    _send(settings, describe_summary(summary))


def notify_gate_failure(settings: Settings, result: GateResult) -> None:
    if "gate" not in settings.notifications:
        return
    if result.status is GateStatus.TIMED_OUT:
        message = f"Timed out waiting for {', '.join(result.missing)}; no containers started"
    else:
        message = f"Missing {', '.join(result.missing)}; no containers started"
    _send(settings, message)
