"""
HTTP upload of a captured utterance to the translation service.

Uses a synchronous ``httpx.Client`` on a worker thread so the whole request,
including the multipart body write, races against one wall-clock deadline.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Dict, Optional

import httpx

from errors import (
    MALFORMED_RESPONSE,
    NO_AUDIO,
    SERVER_REJECTED,
    TIMEOUT,
    UNREACHABLE,
    UPLOAD_FAILED,
)
from models import TranslationResult
from recorder import CaptureHandle

logger = logging.getLogger(__name__)

DEFAULT_DEADLINE_S = 10.0


class HttpUploadClient:
    """Posts audio plus a target-language code to ``POST /upload``.

    Every outcome is returned as a ``TranslationResult``; nothing raises. The
    client never touches session or availability state, the caller decides
    what a failure means.
    """

    def __init__(
        self,
        deadline_s: float = DEFAULT_DEADLINE_S,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        """Initialize the upload client.

        Args:
            deadline_s: Default wall-clock budget for one upload.
            transport: Optional httpx transport, injected by tests.
        """
        self._deadline_s = deadline_s
        self._transport = transport

    def upload(
        self,
        handle: CaptureHandle,
        target_language: str,
        server_url: str,
        deadline_s: Optional[float] = None,
    ) -> TranslationResult:
        """Upload one utterance and classify the outcome.

        Args:
            handle: Finalized capture to send.
            target_language: Wire code, e.g. ``"es"``.
            server_url: Base URL of the translation service.
            deadline_s: Overrides the default deadline for this call.

        Returns:
            The translated text, or a failure carrying one of ``NO_AUDIO``,
            ``TIMEOUT``, ``UNREACHABLE``, ``SERVER_REJECTED``,
            ``MALFORMED_RESPONSE`` or ``UPLOAD_FAILED``.
        """
        audio = handle.audio_bytes()
        if not audio:
            return TranslationResult.failure(NO_AUDIO)

        deadline = self._deadline_s if deadline_s is None else deadline_s
        files = {"audio": (handle.filename, audio, handle.content_type)}
        data = {"targetLanguage": target_language}
        outcome: Dict[str, Any] = {}
        done = threading.Event()

        def _send() -> None:
            try:
                with httpx.Client(
                    base_url=server_url.rstrip("/"),
                    timeout=deadline,
                    transport=self._transport,
                ) as client:
                    outcome["response"] = client.post("/upload", files=files, data=data)
            except httpx.TimeoutException:
                outcome["error"] = TIMEOUT
            except (httpx.HTTPError, httpx.InvalidURL) as exc:
                logger.warning("upload transport failure: %s", exc)
                outcome["error"] = UNREACHABLE
            except Exception:
                logger.exception("upload failed unexpectedly")
                outcome["error"] = UPLOAD_FAILED
            finally:
                done.set()

        threading.Thread(target=_send, name="upload", daemon=True).start()
        if not done.wait(timeout=deadline):
            logger.warning("upload abandoned after %.1fs deadline", deadline)
            return TranslationResult.failure(TIMEOUT)
        response = outcome.get("response")
        if "error" in outcome or response is None:
            return TranslationResult.failure(outcome.get("error", UPLOAD_FAILED))
        return _parse_response(response)


def _parse_response(response: httpx.Response) -> TranslationResult:
    body = _json_or_none(response)
    server_error = ""
    if isinstance(body, dict) and isinstance(body.get("error"), str):
        server_error = body["error"]

    if not response.is_success:
        logger.warning("upload rejected with HTTP %d", response.status_code)
        return TranslationResult.failure(
            SERVER_REJECTED, status_code=response.status_code, detail=server_error
        )

    text = body.get("translatedText") if isinstance(body, dict) else None
    if not isinstance(text, str) or not text:
        return TranslationResult.failure(MALFORMED_RESPONSE, detail=server_error)
    return TranslationResult(text=text)


def _json_or_none(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None
