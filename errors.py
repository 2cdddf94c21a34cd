"""Shared error codes and user-facing messages."""

from __future__ import annotations

from typing import Optional

PERMISSION_DENIED = "PERMISSION_DENIED"
NO_AUDIO = "NO_AUDIO"
TIMEOUT = "TIMEOUT"
UNREACHABLE = "UNREACHABLE"
SERVER_REJECTED = "SERVER_REJECTED"
MALFORMED_RESPONSE = "MALFORMED_RESPONSE"
SESSION_BUSY = "SESSION_BUSY"
CAPTURE_FAILED = "CAPTURE_FAILED"
UPLOAD_FAILED = "UPLOAD_FAILED"

ERROR_MESSAGES = {
    PERMISSION_DENIED: "Microphone permission is required to record.",
    NO_AUDIO: "Error: No recording was captured.",
    TIMEOUT: "Error: The translation server took too long to respond.",
    UNREACHABLE: "Error: Failed to communicate with the translation server.",
    SERVER_REJECTED: "Error: The translation server rejected the request.",
    MALFORMED_RESPONSE: "No translation returned from server.",
    SESSION_BUSY: "A recording is already in progress.",
    CAPTURE_FAILED: "Error: Failed to access the microphone.",
    UPLOAD_FAILED: "Error: Failed to process recording.",
}


def describe_error(code: str, status_code: Optional[int] = None, detail: str = "") -> str:
    """Render the user-facing message for an error code."""
    message = ERROR_MESSAGES.get(code, f"Error: {code}")
    if code == SERVER_REJECTED and status_code is not None:
        message = f"{message[:-1]} (HTTP {status_code})."
    if detail and code in (SERVER_REJECTED, MALFORMED_RESPONSE):
        message = f"{message} {detail}"
    return message
