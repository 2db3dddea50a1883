"""Thin HTTP helpers for the Gemini generateContent endpoint."""
from __future__ import annotations

import json
import logging
import urllib.error
import urllib.parse
import urllib.request
from typing import Any, Dict, Optional

from config import GEMINI_API_BASE
from translator.errors import GeminiApiError

logger = logging.getLogger(__name__)


def _post_json(
    url: str,
    payload: Dict[str, Any],
    headers: Optional[Dict[str, str]] = None,
    timeout: Optional[float] = None,
) -> Any:
    """Perform a JSON POST request with the standard library."""
    data = json.dumps(payload).encode("utf-8")
    req_headers = {"Content-Type": "application/json"}
    if headers:
        req_headers.update(headers)
    request = urllib.request.Request(url, data=data, headers=req_headers, method="POST")
    open_kwargs: Dict[str, Any] = {}
    if timeout is not None:
        open_kwargs["timeout"] = timeout
    try:
        with urllib.request.urlopen(request, **open_kwargs) as response:
            charset = response.headers.get_content_charset() or "utf-8"
            body = response.read().decode(charset, errors="replace")
    except urllib.error.HTTPError as exc:
        raise GeminiApiError(f"HTTP {exc.code}: {_error_message(exc)}", status_code=exc.code) from exc
    except urllib.error.URLError as exc:
        raise GeminiApiError(str(exc.reason)) from exc
    except OSError as exc:
        raise GeminiApiError(str(exc)) from exc
    try:
        return json.loads(body)
    except json.JSONDecodeError as exc:
        raise GeminiApiError("Service returned a non-JSON body") from exc


def _error_message(exc: urllib.error.HTTPError) -> str:
    """Pull `error.message` out of a Google API error body, falling back to the reason."""
    try:
        body = json.loads(exc.read().decode("utf-8", errors="replace"))
        return str(body["error"]["message"])
    except (OSError, ValueError, KeyError, TypeError):
        return str(exc.reason)


def generate_content_url(model: str, api_base: str = GEMINI_API_BASE) -> str:
    return f"{api_base.rstrip('/')}/models/{urllib.parse.quote(model, safe='-.')}:generateContent"


def call_generate_content(
    payload: Dict[str, Any],
    *,
    model: str,
    api_key: str,
    api_base: str = GEMINI_API_BASE,
    timeout: Optional[float] = None,
) -> Dict[str, Any]:
    """
    POST a generateContent request and return the decoded JSON response.

    The key travels in the `x-goog-api-key` header so it never appears in URLs or logs.
    """
    url = generate_content_url(model, api_base)
    logger.debug("POST %s", url)
    response = _post_json(url, payload, headers={"x-goog-api-key": api_key}, timeout=timeout)
    if not isinstance(response, dict):
        raise GeminiApiError("Unexpected response shape from service")
    return response


def extract_response_text(response: Dict[str, Any]) -> str:
    """
    Return the concatenated text parts of the first candidate ("" when there is none).

    A blocked prompt or an empty candidate list yields "" so the caller can report
    a missing response.
    """
    feedback = response.get("promptFeedback") or {}
    if isinstance(feedback, dict) and feedback.get("blockReason"):
        logger.warning("Prompt blocked by service: %s", feedback.get("blockReason"))
    candidates = response.get("candidates") or []
    if not isinstance(candidates, list) or not candidates:
        return ""
    first = candidates[0] if isinstance(candidates[0], dict) else {}
    content = first.get("content") or {}
    if not isinstance(content, dict):
        return ""
    parts = content.get("parts") or []
    texts = [str(part.get("text", "")) for part in parts if isinstance(part, dict)]
    return "".join(texts)
