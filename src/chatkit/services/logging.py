"""Structured logging utilities with optional sinks."""

from __future__ import annotations

import datetime as _dt
import json
import logging
import os
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, Sequence


@dataclass(slots=True)
class _LogContext:
    project_name: str
    environment: str
    session_id: str | None

    @classmethod
    def default_from_environment(cls) -> "_LogContext":
        project = os.getenv("CHATKIT_APP_NAME", "chatkit")
        environment = os.getenv("CHATKIT_ENVIRONMENT", "local").lower()
        return cls(project, environment, None)


class _Unset:
    pass


_UNSET = _Unset()


@dataclass
class LogEvent:
    """Structured payload emitted by the chat session."""

    event: str
    severity: str = "info"
    component: str = "chat-session"
    message: str | None = None
    fields: Dict[str, Any] | None = None

    def to_dict(self) -> Dict[str, Any]:
        payload = {
            "timestamp": _dt.datetime.now(_dt.timezone.utc).isoformat(),
            "event": self.event,
            "severity": self.severity,
            "component": self.component,
        }
        if self.message:
            payload["message"] = self.message
        if self.fields:
            payload.update(self.fields)
        return payload


class StructuredLogger:
    """Fan-out structured logger.

    Writes human readable lines to the standard logging tree by default.
    ``CHATKIT_LOG_FORMAT`` switches to JSON (or both), and sink endpoints
    receive a flattened envelope rendered as debug records.
    """

    def __init__(self, name: str = "chatkit", *, component: str = "chat-session") -> None:
        self._logger = logging.getLogger(name)
        if not self._logger.handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(logging.Formatter("%(message)s"))
            self._logger.addHandler(handler)
        self._logger.setLevel(logging.INFO)
        self._component = component
        self._console_enabled = os.getenv("CHATKIT_DISABLE_CONSOLE_LOGS", "0") != "1"
        self._console_format = os.getenv("CHATKIT_LOG_FORMAT", "human").lower()
        self._context = _LogContext.default_from_environment()
        endpoint = os.getenv("CHATKIT_LOG_SINK_URL")
        self._sink_endpoints: tuple[str, ...] = (endpoint,) if endpoint else ()

    @property
    def name(self) -> str:
        return self._logger.name

    def log(self, event: str, *, severity: str = "info", message: str | None = None, **fields: Any) -> None:
        payload = LogEvent(event=event, severity=severity, component=self._component, message=message, fields=fields)
        self._emit(payload)

    def debug(self, event: str, **fields: Any) -> None:
        self.log(event, severity="debug", **fields)

    def info(self, event: str, **fields: Any) -> None:
        self.log(event, severity="info", **fields)

    def warning(self, event: str, **fields: Any) -> None:
        self.log(event, severity="warning", **fields)

    def error(self, event: str, **fields: Any) -> None:
        self.log(event, severity="error", **fields)

    # ------------------------------------------------------------------ context configuration
    def configure_context(
        self,
        *,
        project_name: str | None = None,
        environment: str | None = None,
        session_id: str | None | _Unset = _UNSET,
    ) -> None:
        if project_name is not None:
            self._context.project_name = project_name
        if environment is not None:
            self._context.environment = environment.lower()
        if session_id is not _UNSET:
            self._context.session_id = session_id

    def configure_sink_endpoints(self, endpoints: Sequence[str]) -> None:
        unique: list[str] = []
        for endpoint in endpoints:
            trimmed = endpoint.strip()
            if not trimmed:
                continue
            if trimmed not in unique:
                unique.append(trimmed)
        self._sink_endpoints = tuple(unique)
        if self._sink_endpoints:
            self._logger.setLevel(min(self._logger.level, logging.DEBUG))

    # ------------------------------------------------------------------ internals
    def _emit(self, event: LogEvent) -> None:
        record = event.to_dict()
        if self._console_enabled:
            self._emit_console(record)
        for sink in self._iter_external_sinks():
            try:
                sink(dict(record))
            except Exception:  # pragma: no cover - defensive
                self._logger.exception("Failed to emit structured log", extra={"event": record})

    def _emit_console(self, record: Dict[str, Any]) -> None:
        fmt = self._console_format
        level = self._severity_to_level(record.get("severity", "info"))
        if fmt in {"json", "both"}:
            self._logger.log(level, json.dumps(record, default=str))
        if fmt in {"human", "both"}:
            self._logger.log(level, self._format_human(record))

    def _iter_external_sinks(self) -> Iterable[Callable[[Dict[str, Any]], None]]:
        for endpoint in self._sink_endpoints:
            yield lambda payload, endpoint=endpoint: self._emit_sink(endpoint, payload)

    @staticmethod
    def _severity_to_level(severity: str) -> int:
        mapping = {
            "debug": logging.DEBUG,
            "info": logging.INFO,
            "warning": logging.WARNING,
            "error": logging.ERROR,
            "critical": logging.CRITICAL,
        }
        return mapping.get(severity.lower(), logging.INFO)

    def _format_human(self, record: Dict[str, Any]) -> str:
        data = dict(record)
        timestamp = data.pop("timestamp", "-")
        event = data.pop("event", "unknown")
        severity = data.pop("severity", "info").upper()
        component = data.pop("component", "")
        message = data.pop("message", None)
        fields = " ".join(f"{key}={self._format_field_value(value)}" for key, value in sorted(data.items()))
        parts = [f"[{timestamp}]", severity, event]
        if component:
            parts.append(f"({component})")
        if message:
            parts.append(f"- {message}")
        if fields:
            parts.append(f"- {fields}")
        return " ".join(part for part in parts if part)

    @staticmethod
    def _format_field_value(value: Any) -> str:
        if isinstance(value, bool):
            return str(value).lower()
        return str(value)

    def _emit_sink(self, endpoint: str, payload: Dict[str, Any]) -> None:
        record = dict(payload)
        event_type = record.pop("event_type", record.get("event"))
        session_id = record.pop("session_id", self._context.session_id)
        ignore_keys = {"timestamp", "event", "severity", "component", "message"}
        event_data = {key: value for key, value in record.items() if key not in ignore_keys}
        body = {
            "project_name": self._context.project_name,
            "environment": self._context.environment,
            "session_id": session_id,
            "event_type": event_type,
            "severity": record.get("severity"),
            "event_data": event_data,
        }
        self._logger.debug("[Sink:%s] %s", endpoint, json.dumps(body, default=str))
