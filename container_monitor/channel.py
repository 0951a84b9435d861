import threading
import time
from typing import Any, Callable, Dict, Optional

import requests
from loguru import logger

from container_monitor.config import NotionConfig


class NotionAPIError(Exception):
    def __init__(self, status_code: int, body: str, method: str, path: str):
        self.status_code = status_code
        self.body = body
        self.method = method
        self.path = path
        super().__init__(f"Notion API error: {status_code} - {method} {path} - {body}")


class NotionChannel:
    """Serialized, paced request channel to the Notion API.

    Every request goes through one queue shared by all callers of the instance:
    - Requests are dispatched in the order `send` was called
    - Two dispatches are never closer than `config.min_interval` seconds
    - A 429 response is retried after its `Retry-After` delay (or
      `config.default_retry_after`), with no retry limit
    - Any other 4xx/5xx response raises `NotionAPIError`
    """

    def __init__(
        self,
        token: str,
        config: NotionConfig = NotionConfig(),
        session: Optional[requests.Session] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.config = config
        self.session = session if session is not None else requests.Session()
        self.session.headers.update(
            {
                "Authorization": f"Bearer {token}",
                "Content-Type": "application/json",
                "Notion-Version": config.api_version,
            }
        )

        self._clock = clock
        self._sleep = sleep
        self._last_dispatch: Optional[float] = None

        # Ticket queue: callers are served strictly in submission order
        self._turn = threading.Condition()
        self._next_ticket = 0
        self._now_serving = 0

    def send(
        self, path: str, method: str, body: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        with self._turn:
            ticket = self._next_ticket
            self._next_ticket += 1
            while ticket != self._now_serving:
                self._turn.wait()

        try:
            return self._send_until_accepted(path, method, body)
        finally:
            with self._turn:
                self._now_serving += 1
                self._turn.notify_all()

    def _send_until_accepted(
        self, path: str, method: str, body: Optional[Dict[str, Any]]
    ) -> Dict[str, Any]:
        url = f"{self.config.base_url.rstrip('/')}/{path.lstrip('/')}"

        while True:
            self._wait_for_slot()
            response = self.session.request(
                method, url, json=body, timeout=self.config.timeout
            )

            if response.status_code == 429:
                retry_after = self._retry_after(response)
                logger.warning(
                    f"NotionChannel.send {method} {path} - Rate limited, retrying in {retry_after}s"
                )
                self._sleep(retry_after)
                continue

            if response.status_code >= 400:
                raise NotionAPIError(response.status_code, response.text, method, path)

            return self._parse(response, method, path)

    def _wait_for_slot(self):
        if self._last_dispatch is not None:
            wait = self._last_dispatch + self.config.min_interval - self._clock()
            if wait > 0:
                self._sleep(wait)

        self._last_dispatch = self._clock()

    def _retry_after(self, response: requests.Response) -> float:
        header = response.headers.get("Retry-After")
        try:
            retry_after = float(header) if header is not None else 0.0
        except ValueError:
            retry_after = 0.0

        return retry_after if retry_after > 0 else self.config.default_retry_after

    @staticmethod
    def _parse(response: requests.Response, method: str, path: str) -> Dict[str, Any]:
        if not response.content:
            return {}

        try:
            payload = response.json()
        except ValueError as e:
            raise NotionAPIError(response.status_code, response.text, method, path) from e

        if not isinstance(payload, dict):
            raise NotionAPIError(response.status_code, response.text, method, path)

        return payload
