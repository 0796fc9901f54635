from typing import Any, Dict, Optional


class CalcError(Exception):
    """Base class for every error raised by the engine."""


class ValidationError(CalcError, ValueError):
    """Bad input, unknown code or a degenerate result. Nothing was recorded."""

    def __init__(self, code: str, message: str, field: Optional[str] = None, /, **details: Any):
        super().__init__(message)
        self.code = code
        self.message = message
        self.field = field
        self.details = details

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"error": self.code, "message": self.message}
        if self.field is not None:
            out["field"] = self.field
        out.update(self.details)
        return out

    @classmethod
    def from_dict(cls, err: Dict[str, Any]) -> "ValidationError":
        rest = {k: v for k, v in err.items() if k not in ("error", "message", "field")}
        return cls(err["error"], err.get("message", err["error"]), err.get("field"), **rest)


class RateFetchError(CalcError):
    """The rate source was unreachable, answered non-2xx or sent a malformed body."""


class SolverError(CalcError):
    """The AI solver could not be set up (e.g. no API key)."""
