"""Instagram Graph API publisher (Reels)."""

import logging
import time
from collections.abc import Callable

import requests

from reelpost.config import ConfigResolver, get_settings
from reelpost.models.capabilities import ContainerRequest, ContainerResult, PublishResult
from reelpost.models.errors import StageFailure
from reelpost.providers.base import PublisherProvider

logger = logging.getLogger(__name__)


class InstagramGraphPublisher(PublisherProvider):
    """Publishes a hosted video as a Reel.

    The platform fetches and transcodes the video asynchronously, so
    ``publish_container`` polls the container status until ``FINISHED`` or
    ``ERROR`` and gives up after ``publisher.poll_timeout_secs``.
    """

    def __init__(
        self,
        config: ConfigResolver,
        session: requests.Session | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        super().__init__(config)
        self.token = config.get("publisher.access_token")
        self.user_id = config.get("publisher.user_id")
        self.api_base = (config.get("publisher.graph_api_base") or "").rstrip("/")
        self.poll_timeout = config.get_float("publisher.poll_timeout_secs")
        self.poll_interval = config.get_float("publisher.poll_interval_secs")
        self.http_timeout = get_settings().http_timeout_secs
        self.session = session or requests.Session()
        self._sleep = sleep
        self._clock = clock

    def _require_credentials(self) -> None:
        if not self.token or not self.user_id:
            raise StageFailure(
                "Missing publisher credentials. "
                "Set REELPOST_IG_ACCESS_TOKEN and REELPOST_IG_USER_ID",
                component="publisher",
            )

    def _post(self, path: str, payload: dict) -> dict:
        try:
            resp = self.session.post(
                f"{self.api_base}/{path}",
                json=payload,
                headers={"Authorization": f"Bearer {self.token}"},
                timeout=self.http_timeout,
            )
        except requests.RequestException as e:
            raise StageFailure(f"Publisher request failed: {e}", component="publisher")
        if not resp.ok:
            raise StageFailure(
                f"Publisher request {path} failed ({resp.status_code}): {_error_message(resp)}",
                component="publisher",
                details={"status_code": resp.status_code},
            )
        return resp.json()

    def create_container(self, request: ContainerRequest) -> ContainerResult:
        self._require_credentials()
        data = self._post(
            f"{self.user_id}/media",
            {"video_url": request.video_url, "caption": request.caption, "media_type": "REELS"},
        )
        container_id = data.get("id")
        if not container_id:
            raise StageFailure("Publisher returned no container id", component="publisher")
        logger.info("Created media container %s", container_id)
        return ContainerResult(container_id=str(container_id))

    def publish_container(self, container_id: str) -> PublishResult:
        self._require_credentials()
        self.wait_for_container(container_id)
        data = self._post(f"{self.user_id}/media_publish", {"creation_id": container_id})
        media_id = data.get("id")
        if not media_id:
            raise StageFailure("Publisher returned no media id", component="publisher")
        logger.info("Published container %s as media %s", container_id, media_id)
        return PublishResult(media_id=str(media_id), container_id=container_id)

    def wait_for_container(self, container_id: str) -> None:
        """Block until the container is ready; StageFailure on error or timeout."""
        started = self._clock()
        while self._clock() - started < self.poll_timeout:
            status = self._container_status(container_id)
            if status.get("status_code") == "FINISHED":
                return
            if status.get("status_code") == "ERROR":
                raise StageFailure(
                    f"Container processing failed: {status.get('status') or 'unknown error'}",
                    component="publisher",
                    details={"container_id": container_id},
                )
            self._sleep(self.poll_interval)
        raise StageFailure(
            f"Container {container_id} not ready after {self.poll_timeout:.0f}s",
            component="publisher",
            details={"container_id": container_id},
        )

    def _container_status(self, container_id: str) -> dict:
        try:
            resp = self.session.get(
                f"{self.api_base}/{container_id}",
                params={"fields": "status_code,status", "access_token": self.token},
                timeout=self.http_timeout,
            )
        except requests.RequestException as e:
            logger.warning("Status poll for %s failed: %s", container_id, e)
            return {}
        if not resp.ok:
            logger.warning("Status poll for %s returned %d", container_id, resp.status_code)
            return {}
        return resp.json()


def _error_message(resp: requests.Response) -> str:
    try:
        return resp.json().get("error", {}).get("message") or resp.reason
    except ValueError:
        return resp.reason or ""
