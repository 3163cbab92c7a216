"""
Intake Error Taxonomy

ModelUnavailable / ParseFailure: stage-local, recovered by the orchestrator
ValidationFailure / ConfigurationError: surfaced to the caller
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence


class IntakeError(Exception):
    """Base class for every intake pipeline error."""

    error_code = "INTAKE_ERROR"
    is_retryable = False

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}
        self.timestamp = datetime.now(timezone.utc).isoformat()

    def to_user_response(self) -> str:
        return "I encountered an issue processing your request. Please try again."

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error_code": self.error_code,
            "message": self.message,
            "retryable": self.is_retryable,
            "timestamp": self.timestamp,
        }


class ModelUnavailable(IntakeError):
    """The completion backend errored or timed out."""

    error_code = "MODEL_UNAVAILABLE"
    is_retryable = True

    def __init__(self, provider: str, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(f"{provider}: {message}", {**(context or {}), "provider": provider})
        self.provider = provider

    def to_user_response(self) -> str:
        return "I'm experiencing some technical difficulties. Please try again in a moment."


class ParseFailure(IntakeError):
    """Completion text could not be turned into a complete record."""

    error_code = "PARSE_FAILURE"
    is_retryable = True

    def __init__(self, message: str, raw_text: str = "", context: Optional[Dict[str, Any]] = None):
        super().__init__(message, context)
        self.raw_text = raw_text

    def to_user_response(self) -> str:
        return "I'm having trouble understanding your message. Could you please rephrase or provide more details?"


class SchemaMismatch(ParseFailure):
    """A payload was found but its fields do not fit the stage schema."""

    error_code = "SCHEMA_MISMATCH"

    def __init__(self, schema_name: str, errors: List[str], raw_text: str = ""):
        super().__init__(
            f"{schema_name} payload failed validation: {'; '.join(errors)}",
            raw_text=raw_text,
            context={"schema": schema_name},
        )
        self.errors = errors


class ValidationFailure(IntakeError):
    """Parsed correctly but semantically incomplete. Never retried."""

    error_code = "VALIDATION_ERROR"

    def to_user_response(self) -> str:
        return self.message


class ContactInfoMissing(ValidationFailure):
    """Contact extraction produced no name or no way to reach the client."""

    error_code = "CONTACT_INFO_MISSING"

    def __init__(
        self,
        missing_fields: Sequence[str],
        session_id: str,
        state: str = "failed",
        stage_failures: Sequence[Any] = (),
    ):
        super().__init__(
            f"Missing contact information: {', '.join(missing_fields)}",
            {"session_id": session_id},
        )
        self.missing_fields = list(missing_fields)
        self.session_id = session_id
        self.state = state
        self.stage_failures = tuple(stage_failures)

    def to_user_response(self) -> str:
        if "full_name" in self.missing_fields and len(self.missing_fields) == 1:
            return "I need your full name to proceed. Could you please provide your complete name?"
        if "full_name" in self.missing_fields:
            return (
                "I need your name and a way to reach you to proceed. "
                "Could you please share your full name and an email address or phone number?"
            )
        return (
            "I need a way for the attorney to reach you. "
            "Could you please provide an email address or phone number?"
        )

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({
            "missing_fields": self.missing_fields,
            "session_id": self.session_id,
            "state": self.state,
            "user_message": self.to_user_response(),
        })
        return data


class ConfigurationError(IntakeError):
    """Deployment is misconfigured (credentials, provider, thresholds). Fatal."""

    error_code = "CONFIGURATION_ERROR"

    def to_user_response(self) -> str:
        return "There's a configuration issue. Please contact support."
