"""Periodic reachability probe for the translation service."""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Optional

import httpx

from languages import name_for_code
from models import ServerAvailability, SessionContext

logger = logging.getLogger(__name__)

AvailabilityCallback = Callable[[ServerAvailability], None]


class AvailabilityMonitor:
    """Owns ``SessionContext.availability``; nothing else writes to it.

    A probe is ``GET <probe_path>``. A 2xx JSON object marks the service
    reachable and, when it carries ``currentLanguage``, pulls that language
    into the local pair. Anything else marks it unreachable.
    """

    def __init__(
        self,
        context: SessionContext,
        probe_path: str = "/language",
        interval_s: float = 15.0,
        request_timeout_s: float = 3.0,
        freshness_s: float = 3.0,
        transport: Optional[httpx.BaseTransport] = None,
        clock: Callable[[], float] = time.monotonic,
        on_change: Optional[AvailabilityCallback] = None,
    ) -> None:
        self._context = context
        self._probe_path = probe_path
        self._interval_s = interval_s
        self._request_timeout_s = request_timeout_s
        self._freshness_s = freshness_s
        self._transport = transport
        self._clock = clock
        self._on_change = on_change
        self._probe_lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def availability(self) -> ServerAvailability:
        return self._context.availability

    def start(self) -> None:
        if self._thread and self._thread.is_alive():
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._worker, name="availability", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stop_event.set()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=self._request_timeout_s + 0.5)
        self._thread = None

    def check_availability(self) -> bool:
        with self._probe_lock:
            reachable = self._probe()
            self._record(reachable)
            return reachable

    def check_now(self) -> bool:
        """Return the cached status, probing first when it is stale."""
        if self.availability.is_stale(self._freshness_s, self._clock()):
            return self.check_availability()
        return self.availability.reachable

    def mark_unreachable(self) -> None:
        with self._probe_lock:
            self._record(False)

    def _worker(self) -> None:
        while not self._stop_event.is_set():
            self.check_availability()
            if self._stop_event.wait(self._interval_s):
                break

    def _probe(self) -> bool:
        try:
            with httpx.Client(
                base_url=self._context.server_url.rstrip("/"),
                timeout=self._request_timeout_s,
                transport=self._transport,
            ) as client:
                response = client.get(self._probe_path)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            logger.warning("availability probe failed: %s", exc)
            return False

        if not response.is_success:
            logger.warning("availability probe returned HTTP %d", response.status_code)
            return False
        try:
            body = response.json()
        except ValueError:
            logger.warning("availability probe returned a non-JSON body")
            return False
        if not isinstance(body, dict):
            return False

        remote = body.get("currentLanguage")
        if isinstance(remote, str) and remote:
            self._reconcile(remote)
        return True

    def _reconcile(self, remote: str) -> None:
        name = name_for_code(remote)
        if self._context.reconcile_target(name):
            logger.info("target language set to %s by the server", name)
        elif name != self._context.languages.target:
            logger.warning("server reported unknown language %r", remote)

    def _record(self, reachable: bool) -> None:
        availability = self._context.availability
        changed = availability.reachable != reachable
        availability.reachable = reachable
        availability.last_checked_at = self._clock()
        if changed:
            logger.info("translation service %s", "reachable" if reachable else "unreachable")
        if self._on_change:
            self._on_change(availability)
