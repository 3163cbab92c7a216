"""
Intake Configuration

從環境變數讀取 pipeline 設定；所有門檻與重試次數皆可調整
"""

import logging
import os
from dataclasses import dataclass
from typing import Callable, Optional, TypeVar

from legal_intake.errors import ConfigurationError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class IntakeConfig:
    """Pipeline thresholds, retry budgets and model call settings."""
    provider: str = "claude"
    confidence_threshold: float = 0.5
    timeout_seconds: float = 20.0

    # Attempts per stage (1 = no retry)
    classification_attempts: int = 1
    matter_attempts: int = 2
    contact_attempts: int = 2
    quality_attempts: int = 2
    action_attempts: int = 2

    human_review_completeness: int = 50
    temperature: float = 0.1
    max_tokens: int = 500

    def __post_init__(self):
        if not 0.0 <= self.confidence_threshold <= 1.0:
            raise ConfigurationError(
                f"confidence_threshold must be within [0, 1], got {self.confidence_threshold}"
            )
        if self.timeout_seconds <= 0:
            raise ConfigurationError(
                f"timeout_seconds must be positive, got {self.timeout_seconds}"
            )
        for name in (
            "classification_attempts",
            "matter_attempts",
            "contact_attempts",
            "quality_attempts",
            "action_attempts",
        ):
            if getattr(self, name) < 1:
                raise ConfigurationError(f"{name} must be at least 1")
        if not 0 <= self.human_review_completeness <= 100:
            raise ConfigurationError(
                f"human_review_completeness must be within [0, 100], "
                f"got {self.human_review_completeness}"
            )

    @classmethod
    def from_env(cls) -> "IntakeConfig":
        """從環境變數建立設定，未設定者使用預設值"""
        defaults = cls()
        return cls(
            provider=os.getenv("LLM_PROVIDER", defaults.provider),
            confidence_threshold=_env("INTAKE_CONFIDENCE_THRESHOLD", float, defaults.confidence_threshold),
            timeout_seconds=_env("INTAKE_COMPLETION_TIMEOUT", float, defaults.timeout_seconds),
            classification_attempts=_env("INTAKE_CLASSIFICATION_ATTEMPTS", int, defaults.classification_attempts),
            matter_attempts=_env("INTAKE_MATTER_ATTEMPTS", int, defaults.matter_attempts),
            contact_attempts=_env("INTAKE_CONTACT_ATTEMPTS", int, defaults.contact_attempts),
            quality_attempts=_env("INTAKE_QUALITY_ATTEMPTS", int, defaults.quality_attempts),
            action_attempts=_env("INTAKE_ACTION_ATTEMPTS", int, defaults.action_attempts),
            human_review_completeness=_env(
                "INTAKE_HUMAN_REVIEW_COMPLETENESS", int, defaults.human_review_completeness
            ),
            temperature=_env("INTAKE_TEMPERATURE", float, defaults.temperature),
            max_tokens=_env("INTAKE_MAX_TOKENS", int, defaults.max_tokens),
        )


def _env(key: str, cast: Callable[[str], T], default: T) -> T:
    raw: Optional[str] = os.getenv(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        return cast(raw.strip())
    except ValueError:
        logger.error(f"Invalid value for {key}: {raw!r}")
        raise ConfigurationError(f"{key} must be a valid {cast.__name__}, got {raw!r}")
