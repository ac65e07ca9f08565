from __future__ import annotations

import json
import logging
from typing import Any, Mapping

from .errors import ExecutionError, UnsupportedLanguage
from .runner import build_request, dispatch, resolve_settings
from .settings import RunnerSettings

_log = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
}
UNSUPPORTED_LANGUAGE_MESSAGE = "Unsupported language!"
INTERNAL_ERROR_PREFIX = "Internal server error: "


def _response(status: int, body: Any, headers: Mapping[str, str] | None = None) -> dict[str, Any]:
    """Build an HTTP-style response envelope with a JSON-encoded body.

    Example:
        ```python
        resp = _response(200, "hello\\n")
        ```
    """
    envelope: dict[str, Any] = {"statusCode": status, "body": json.dumps(body)}
    if headers:
        envelope["headers"] = dict(headers)
    return envelope


def _event_fields(event: Mapping[str, Any]) -> Mapping[str, Any]:
    """Return request fields from the event itself or its JSON `body`.

    Example:
        ```python
        fields = _event_fields({"body": '{"language": "python", "code": "print(1)"}'})
        ```
    """
    body = event.get("body")
    if isinstance(body, str) and "language" not in event:
        parsed = json.loads(body)
        if not isinstance(parsed, dict):
            raise ValueError("request body must be a JSON object")
        return parsed
    return event


def handle_event(
    event: Mapping[str, Any],
    *,
    settings: RunnerSettings | None = None,
    settings_file: str | None = None,
) -> dict[str, Any]:
    """Turn an HTTP-style event into a status/body response envelope.

    Example:
        ```python
        resp = handle_event({"language": "python", "code": "print('hi')"})
        assert resp["statusCode"] == 200
        ```
    """
    if event.get("httpMethod") == "OPTIONS":
        return _response(200, {}, CORS_HEADERS)

    resolved = resolve_settings(settings, settings_file)
    try:
        fields = _event_fields(event)
        language = fields.get("language")
        if not isinstance(language, str):
            raise UnsupportedLanguage(str(language))
        user_input = fields.get("userInput")
        request = build_request(
            language,
            str(fields.get("code") or ""),
            None if user_input is None else str(user_input),
            resolved,
        )
        output = dispatch(request, resolved)
    except UnsupportedLanguage:
        return _response(400, UNSUPPORTED_LANGUAGE_MESSAGE)
    except (ExecutionError, OSError, ValueError) as exc:
        _log.error("Error: %s", exc)
        return _response(500, INTERNAL_ERROR_PREFIX + str(exc))
    return _response(200, output)
