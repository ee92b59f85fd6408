"""
Periodically POST generator payloads to a collector endpoint.

The sender owns everything outside the generation engine: the HTTP client,
pacing, timeouts, worker threads and stop signalling. Generators only build
payloads; a generation error propagates out of send_once() and stops the
worker that hit it, while transport errors are logged and the loop goes on.
"""

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

import httpx

from .payloads import Request

logger = logging.getLogger(__name__)


class Generator(Protocol):
    """What the sender needs from a generator."""

    path: str

    def headers(self) -> dict[str, str]: ...

    def generate(self) -> Request: ...


@dataclass
class SenderStats:
    """Running totals across all workers of one sender."""

    requests_sent: int = 0
    requests_failed: int = 0
    records_sent: int = 0
    bytes_sent: int = 0
    consecutive_failures: int = 0


class Sender:
    """Send one generator's payloads to `endpoint` + generator.path."""

    def __init__(
        self,
        generator: Generator,
        endpoint: str,
        headers: dict[str, str] | None = None,
        timeout: float = 15.0,
        client: httpx.Client | None = None,
        max_consecutive_failures: int | None = None,
    ):
        """Initialize sender.

        headers are merged over the generator's own headers, except that the
        wire-format headers (Content-Type, Content-Encoding) always come from
        the generator. max_consecutive_failures stops the run loop after that
        many transport failures in a row; None never stops.
        """
        self.generator = generator
        self.url = endpoint.rstrip("/") + generator.path
        self.headers = {**(headers or {}), **generator.headers()}
        self.timeout = timeout
        self.max_consecutive_failures = max_consecutive_failures
        self.client = client or httpx.Client()
        self._owns_client = client is None
        self.stats = SenderStats()
        self._stats_lock = threading.Lock()
        self._stop_event = threading.Event()
        self._threads: list[threading.Thread] = []

    def send_once(self) -> httpx.Response:
        """Generate one payload and POST it; raises on generation or HTTP errors."""
        request = self.generator.generate()
        body = request.serialize()
        try:
            response = self.client.post(self.url, content=body, headers=self.headers, timeout=self.timeout)
            response.raise_for_status()
        except httpx.HTTPError:
            with self._stats_lock:
                self.stats.requests_failed += 1
                self.stats.consecutive_failures += 1
            raise
        with self._stats_lock:
            self.stats.requests_sent += 1
            self.stats.records_sent += request.size()
            self.stats.bytes_sent += len(body)
            self.stats.consecutive_failures = 0
        logger.debug("Sent %d records (%d bytes) to %s", request.size(), len(body), self.url)
        return response

    def _too_many_failures(self) -> bool:
        if self.max_consecutive_failures is None:
            return False
        with self._stats_lock:
            return self.stats.consecutive_failures >= self.max_consecutive_failures

    def run(
        self,
        count: int | None = None,
        interval_ms: float = 1000,
        progress_callback: Callable[[int, SenderStats], None] | None = None,
    ) -> SenderStats:
        """Send `count` payloads (forever when None), one every `interval_ms`.

        Returns early when stop() is called or after too many consecutive
        transport failures.
        """
        interval = max(interval_ms, 0) / 1000.0
        i = 0
        while not self._stop_event.is_set() and (count is None or i < count):
            started = time.monotonic()
            i += 1
            try:
                self.send_once()
            except httpx.HTTPStatusError as e:
                logger.warning(
                    "HTTP error sending to %s: %s %s",
                    self.url,
                    e.response.status_code,
                    e.response.reason_phrase,
                )
            except httpx.HTTPError as e:
                logger.warning("Connection error sending to %s: %s", self.url, e)
            if progress_callback is not None:
                progress_callback(i, self.stats)
            if self._too_many_failures():
                logger.error(
                    "Stopping after %d consecutive failures to %s",
                    self.stats.consecutive_failures,
                    self.url,
                )
                self._stop_event.set()
                break
            if count is not None and i >= count:
                break
            self._stop_event.wait(max(interval - (time.monotonic() - started), 0))
        return self.stats

    def start(
        self,
        workers: int = 1,
        count: int | None = None,
        interval_ms: float = 1000,
        progress_callback: Callable[[int, SenderStats], None] | None = None,
    ) -> None:
        """Run `workers` send loops in background threads sharing this generator.

        progress_callback is called from every worker with that worker's own
        payload number and the shared stats.
        """
        if self.is_running():
            logger.info("Sender is already running.")
            return
        self._stop_event.clear()
        self._threads = [
            threading.Thread(
                target=self.run,
                kwargs={"count": count, "interval_ms": interval_ms, "progress_callback": progress_callback},
                name=f"logmetrics-sender-{n}",
                daemon=True,
            )
            for n in range(max(workers, 1))
        ]
        for thread in self._threads:
            thread.start()

    def is_running(self) -> bool:
        return any(t.is_alive() for t in self._threads)

    def join(self, timeout: float | None = None) -> None:
        for thread in self._threads:
            thread.join(timeout)

    def stop(self, timeout: float = 5.0) -> None:
        """Signal all workers to stop and wait for them."""
        self._stop_event.set()
        for thread in self._threads:
            thread.join(timeout)
            if thread.is_alive():
                logger.warning("Sender thread %s did not stop in time.", thread.name)
        self._threads = []

    def close(self) -> None:
        self.stop()
        if self._owns_client:
            self.client.close()

    def __enter__(self) -> "Sender":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
