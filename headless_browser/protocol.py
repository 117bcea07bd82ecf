"""CDP wire model.

Outbound frames are ``{"id", "method", "params"?}``. Inbound frames are either
responses (``id`` plus ``result`` or ``error``) or notifications (``method``
plus ``params``, no ``id``).
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

from .errors import EvaluationError, EvaluationSyntaxError

NETWORK_ENABLE = "Network.enable"
NETWORK_LOADING_FINISHED = "Network.loadingFinished"
RUNTIME_EVALUATE = "Runtime.evaluate"


def build_frame(request_id: int, method: str, params: dict[str, Any] | None = None) -> str:
    msg: dict[str, Any] = {"id": request_id, "method": method}
    if params:
        msg["params"] = params
    return json.dumps(msg)


@dataclass(frozen=True, slots=True)
class Response:
    id: int
    result: Any = None
    error: Any = None
    has_result: bool = False
    has_error: bool = False


@dataclass(frozen=True, slots=True)
class Notification:
    method: str
    params: dict[str, Any] = field(default_factory=dict)


def parse_message(raw: str | bytes) -> Response | Notification | None:
    """Classify one inbound frame; returns None for frames that are neither."""
    try:
        data = json.loads(raw)
    except (TypeError, ValueError):
        return None
    if not isinstance(data, dict):
        return None

    method = data.get("method")
    if isinstance(method, str) and method:
        params = data.get("params")
        return Notification(method=method, params=params if isinstance(params, dict) else {})

    raw_id = data.get("id")
    if isinstance(raw_id, bool) or not isinstance(raw_id, int):
        return None
    return Response(
        id=raw_id,
        result=data.get("result"),
        error=data.get("error"),
        has_result="result" in data,
        has_error="error" in data,
    )


@dataclass(frozen=True, slots=True)
class RemoteObject:
    type: str
    value: Any = None
    subtype: str | None = None
    class_name: str | None = None
    description: str | None = None
    object_id: str | None = None

    @classmethod
    def from_payload(cls, payload: Any) -> RemoteObject:
        if not isinstance(payload, dict):
            return cls(type="undefined")
        object_id = payload.get("objectId")
        return cls(
            type=str(payload.get("type") or "undefined"),
            value=payload.get("value"),
            subtype=payload.get("subtype"),
            class_name=payload.get("className"),
            description=payload.get("description"),
            object_id=str(object_id) if object_id is not None else None,
        )


@dataclass(frozen=True, slots=True)
class ExceptionDetails:
    text: str = ""
    line_number: int = 0
    column_number: int = 0
    exception: RemoteObject | None = None

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> ExceptionDetails:
        exc = payload.get("exception")
        return cls(
            text=str(payload.get("text") or ""),
            line_number=int(payload.get("lineNumber") or 0),
            column_number=int(payload.get("columnNumber") or 0),
            exception=RemoteObject.from_payload(exc) if isinstance(exc, dict) else None,
        )

    @property
    def description(self) -> str:
        if self.exception is not None and self.exception.description:
            return self.exception.description
        return self.text


@dataclass(frozen=True, slots=True)
class EvaluationResult:
    """Result of ``Runtime.evaluate``; ``type`` is the discriminator."""

    result: RemoteObject
    exception_details: ExceptionDetails | None = None
    raw: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: Any) -> EvaluationResult:
        data = payload if isinstance(payload, dict) else {}
        details = data.get("exceptionDetails")
        return cls(
            result=RemoteObject.from_payload(data.get("result")),
            exception_details=ExceptionDetails.from_payload(details) if isinstance(details, dict) else None,
            raw=data,
        )

    @property
    def type(self) -> str:
        return self.result.type

    @property
    def value(self) -> Any:
        return self.result.value

    @property
    def is_undefined(self) -> bool:
        return self.result.type == "undefined"

    @property
    def is_error(self) -> bool:
        return self.exception_details is not None


def check_for_error_result(result: EvaluationResult, expression: str) -> None:
    """Raise when the evaluated ``expression`` threw inside the page."""
    details = result.exception_details
    if details is None:
        return
    description = details.description
    if "SyntaxError" in description:
        message = description.replace("SyntaxError: ", "", 1)
        raise EvaluationSyntaxError(f"{message}: `{expression}`", description=description, expression=expression)
    raise EvaluationError(f'{description}: "{expression}"', description=description, expression=expression)


__all__ = [
    "NETWORK_ENABLE",
    "NETWORK_LOADING_FINISHED",
    "RUNTIME_EVALUATE",
    "EvaluationResult",
    "ExceptionDetails",
    "Notification",
    "RemoteObject",
    "Response",
    "build_frame",
    "check_for_error_result",
    "parse_message",
]
