"""
Request payloads and response envelopes for the Logger Simple API.

Every request is a JSON object POSTed to the service root:

    {"action": "logger", "request": "new_log", "app_id": ..., "api_key": ...,
     "logLevel": "info", "message": "...", "context": "<json text>"}

Every response is an envelope ``{"success": bool, "data": ..., "error": str}``.
"""

import json
import traceback
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError as PydanticValidationError, field_validator

from .config import Credentials
from .errors import ApiRejection, HttpError, MalformedResponse, ValidationError, redact_secrets

ACTION = "logger"
TRUNCATION_MARKER = "... [TRUNCATED]"


class LogLevel(str, Enum):
    """Levels accepted by the service."""

    SUCCESS = "success"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"

    @classmethod
    def parse(cls, value: "LogLevel | str") -> "LogLevel":
        try:
            return cls(value)
        except ValueError:
            raise ValidationError(f"Invalid log level: {value}") from None


class Action(str, Enum):
    """Values of the ``request`` field."""

    HEALTH = "health"
    NEW_LOG = "new_log"
    HEARTBEAT = "heartbeat"


@dataclass(frozen=True)
class TextContext:
    """Context already in text form; sent as-is."""

    text: str

    def serialize(self) -> str:
        return self.text


@dataclass(frozen=True)
class StructuredContext:
    """Any JSON-serializable value; sent as JSON text."""

    value: Any

    def serialize(self) -> str:
        return json.dumps(self.value, default=str, ensure_ascii=False)


Context = TextContext | StructuredContext


def to_context(value: Any) -> Context | None:
    """Resolve a caller-supplied context value into a ``Context``."""
    if value is None:
        return None
    if isinstance(value, TextContext | StructuredContext):
        return value
    if isinstance(value, str):
        return TextContext(value)
    return StructuredContext(value)


def truncate_message(message: str, max_length: int) -> str:
    """Cut ``message`` to ``max_length`` code points and append the marker."""
    if len(message) <= max_length:
        return message
    return message[:max_length] + TRUNCATION_MARKER


class ApiResponse(BaseModel):
    """Response envelope returned by every API action."""

    model_config = ConfigDict(extra="allow")

    success: bool = False
    data: Any = None
    error: str | None = None

    @field_validator("error", mode="before")
    @classmethod
    def _stringify_error(cls, value: Any) -> str | None:
        if value is None or isinstance(value, str):
            return value
        return json.dumps(value, default=str)

    @property
    def has_data(self) -> bool:
        return "data" in self.model_fields_set


class RequestCodec:
    """Builds request payloads and interprets raw responses."""

    def __init__(self, credentials: Credentials):
        self.credentials = credentials

    def build(self, action: Action, **fields: Any) -> dict[str, Any]:
        payload = {
            "action": ACTION,
            "request": action.value,
            "app_id": self.credentials.app_id,
            "api_key": self.credentials.api_key,
        }
        payload.update(fields)
        return payload

    def build_health(self) -> dict[str, Any]:
        return self.build(Action.HEALTH)

    def build_heartbeat(self) -> dict[str, Any]:
        return self.build(Action.HEARTBEAT)

    def build_log(self, level: LogLevel, message: str, context: Context | None = None) -> dict[str, Any]:
        fields: dict[str, Any] = {"logLevel": level.value, "message": message}
        if context is not None:
            fields["context"] = context.serialize()
        return self.build(Action.NEW_LOG, **fields)

    def encode(self, payload: dict[str, Any]) -> bytes:
        return json.dumps(payload, default=str).encode("utf-8")

    def decode(self, status_code: int, body: str) -> Any:
        """
        Interpret a raw response.

        Returns the envelope's ``data`` field, or the whole decoded object when
        the envelope carries no ``data``.

        Raises:
            MalformedResponse: body is not JSON
            HttpError: status outside [200, 300)
            ApiRejection: 2xx but ``success`` false or absent
        """
        safe_body = redact_secrets(body, self.credentials.api_key)

        try:
            decoded = json.loads(body)
        except (TypeError, ValueError):
            raise MalformedResponse(
                f"Invalid JSON response: {safe_body[:200]}",
                status_code=status_code,
                body=safe_body,
            ) from None

        envelope = self._envelope(decoded)

        if not 200 <= status_code < 300:
            reason = envelope.error if envelope and envelope.error else "Request failed"
            raise HttpError(
                f"HTTP {status_code}: {redact_secrets(reason, self.credentials.api_key)}",
                status_code=status_code,
                body=safe_body,
            )

        if envelope is None or not envelope.success:
            reason = envelope.error if envelope and envelope.error else "API request failed"
            raise ApiRejection(
                redact_secrets(reason, self.credentials.api_key),
                status_code=status_code,
                body=safe_body,
            )

        return envelope.data if envelope.has_data else decoded

    @staticmethod
    def _envelope(decoded: Any) -> ApiResponse | None:
        if not isinstance(decoded, dict):
            return None
        try:
            return ApiResponse.model_validate(decoded)
        except PydanticValidationError:
            return None


def exception_context(fault: BaseException) -> dict[str, Any]:
    """Structured context describing ``fault`` for an exception log."""
    frames = traceback.extract_tb(fault.__traceback__) if fault.__traceback__ else []
    origin = frames[-1] if frames else None

    code = getattr(fault, "errno", None)
    if code is None:
        code = getattr(fault, "code", None)

    return {
        "exception": type(fault).__name__,
        "message": str(fault),
        "file": origin.filename if origin else None,
        "line": origin.lineno if origin else None,
        "trace": "".join(traceback.format_exception(type(fault), fault, fault.__traceback__))
        if fault.__traceback__
        else None,
        "code": code,
        "timestamp": datetime.now(UTC).isoformat(),
    }
