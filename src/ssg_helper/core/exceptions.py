from __future__ import annotations

from typing import Any, Dict, Mapping


class SsgError(Exception):
    """Base exception for ssg-helper."""

    context: Dict[str, Any]

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        super().__init__(message)
        if context is not None:
            # Store a shallow copy to avoid accidental mutation.
            self.context = dict(context)
        else:
            self.context = {}

    def to_json_error(self) -> Dict[str, Any]:
        """Return a JSON-serializable error payload."""
        return {
            "message": str(self),
            "code": self.__class__.__name__,
            "context": self.context,
        }


class PreconditionError(SsgError, FileNotFoundError):
    """Raised when a required input directory is missing."""

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        SsgError.__init__(self, message, context=context)
        FileNotFoundError.__init__(self, message)


class ConfigurationError(SsgError, ValueError):
    """Raised when the generation configuration is invalid."""

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        SsgError.__init__(self, message, context=context)
        ValueError.__init__(self, message)


class PortResolutionError(SsgError, ValueError):
    """Raised when no usable port can be resolved."""

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        SsgError.__init__(self, message, context=context)
        ValueError.__init__(self, message)


class ServerStartError(SsgError, RuntimeError):
    """Raised when the SSR server process cannot be spawned."""

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        SsgError.__init__(self, message, context=context)
        RuntimeError.__init__(self, message)


class ReadinessTimeoutError(SsgError, TimeoutError):
    """Raised when an optional readiness bound expires."""

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        SsgError.__init__(self, message, context=context)
        TimeoutError.__init__(self, message)


class CaptureError(SsgError, RuntimeError):
    """Raised when fetching or persisting the rendered document fails."""

    def __init__(
        self,
        message: str,
        *,
        url: str | None = None,
        status: int | None = None,
        details: str | None = None,
        context: Mapping[str, Any] | None = None,
    ) -> None:
        ctx = dict(context or {})
        if url:
            ctx["url"] = url
        if status is not None:
            ctx["status"] = status
        if details:
            ctx["details"] = details
        SsgError.__init__(self, message, context=ctx)
        RuntimeError.__init__(self, message)


__all__ = [
    "SsgError",
    "PreconditionError",
    "ConfigurationError",
    "PortResolutionError",
    "ServerStartError",
    "ReadinessTimeoutError",
    "CaptureError",
]
