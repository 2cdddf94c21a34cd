"""Best-effort push of the selected target language to the service."""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

import httpx

from models import SessionContext

logger = logging.getLogger(__name__)

FailureCallback = Callable[[str, str], None]


class LanguageSync:
    """Fire-and-forget ``POST /language``.

    Each push runs on its own daemon thread and never waits for an earlier
    one. Failures are logged and reported through ``on_failure``; uploads
    carry the language explicitly, so a missed push is harmless.
    """

    def __init__(
        self,
        context: SessionContext,
        request_timeout_s: float = 5.0,
        transport: Optional[httpx.BaseTransport] = None,
        on_failure: Optional[FailureCallback] = None,
    ) -> None:
        self._context = context
        self._request_timeout_s = request_timeout_s
        self._transport = transport
        self._on_failure = on_failure

    def attach(self) -> None:
        self._context.on_target_change(self.push)

    def push(self, target_language: str) -> Optional[threading.Thread]:
        if not self._context.availability.reachable:
            logger.debug("service unreachable, skipping language sync for %s", target_language)
            return None
        thread = threading.Thread(
            target=self._send,
            args=(target_language, self._context.server_url),
            name="language-sync",
            daemon=True,
        )
        thread.start()
        return thread

    def _send(self, target_language: str, server_url: str) -> None:
        try:
            with httpx.Client(
                base_url=server_url.rstrip("/"),
                timeout=self._request_timeout_s,
                transport=self._transport,
            ) as client:
                response = client.post(
                    "/language",
                    json={"targetLanguage": target_language},
                    headers={"Accept": "application/json"},
                )
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            self._fail(target_language, f"network error: {exc}")
            return
        if response.status_code != 200:
            self._fail(target_language, f"HTTP {response.status_code}")
            return
        logger.debug("language sync for %s accepted", target_language)

    def _fail(self, target_language: str, reason: str) -> None:
        logger.warning("language sync for %s failed: %s", target_language, reason)
        if self._on_failure:
            try:
                self._on_failure(target_language, reason)
            except Exception:
                logger.exception("language sync failure callback raised")
