"""Runtime configuration model for feedprep.

This module owns all environment variable parsing and validation.
Other modules consume a typed config object instead of raw env reads.
"""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path

from core.constants import (
    DEFAULT_LOG_LEVEL,
    DEFAULT_MAX_POLL_ATTEMPTS,
    DEFAULT_POLL_INTERVAL_SECONDS,
    DEFAULT_REQUEST_TIMEOUT_SECONDS,
    DEFAULT_SCORE_SCALE_FACTOR,
    DEFAULT_WORK_DIR_NAME,
)
from core.errors import FeedConfigError


@dataclass(frozen=True)
class FeedPrepConfig:
    """Validated runtime configuration.

    Attributes:
        redash_base_url: Base URL of the Redash instance, if configured.
        redash_api_key: Redash user API key, if configured.
        score_scale_factor: Multiplier applied to raw score values.
        query_id: Default Redash query id for feed preparation.
        request_timeout_seconds: HTTP timeout per Redash request.
        poll_interval_seconds: Delay between job status polls.
        max_poll_attempts: Poll budget before a job is considered timed out.
        work_dir: Directory for raw query downloads during feed preparation.
        log_level: Minimum structured log level.
    """

    redash_base_url: str | None
    redash_api_key: str | None
    score_scale_factor: float
    query_id: int | None
    request_timeout_seconds: float
    poll_interval_seconds: float
    max_poll_attempts: int
    work_dir: Path
    log_level: str

    @classmethod
    def from_env(cls) -> "FeedPrepConfig":
        """Build config from process environment variables.

        Returns:
            A validated config object.

        Raises:
            FeedConfigError: If environment values are invalid.
        """
        query_id_value = os.getenv("FEEDPREP_QUERY_ID")
        return cls(
            redash_base_url=os.getenv("REDASH_BASE_URL") or None,
            redash_api_key=os.getenv("REDASH_API_KEY") or None,
            score_scale_factor=_parse_float(
                "FEEDPREP_SCORE_SCALE",
                os.getenv("FEEDPREP_SCORE_SCALE", str(DEFAULT_SCORE_SCALE_FACTOR)),
            ),
            query_id=_parse_int("FEEDPREP_QUERY_ID", query_id_value) if query_id_value else None,
            request_timeout_seconds=_parse_float(
                "FEEDPREP_REQUEST_TIMEOUT",
                os.getenv("FEEDPREP_REQUEST_TIMEOUT", str(DEFAULT_REQUEST_TIMEOUT_SECONDS)),
            ),
            poll_interval_seconds=_parse_float(
                "FEEDPREP_POLL_INTERVAL",
                os.getenv("FEEDPREP_POLL_INTERVAL", str(DEFAULT_POLL_INTERVAL_SECONDS)),
            ),
            max_poll_attempts=_parse_int(
                "FEEDPREP_MAX_POLL_ATTEMPTS",
                os.getenv("FEEDPREP_MAX_POLL_ATTEMPTS", str(DEFAULT_MAX_POLL_ATTEMPTS)),
            ),
            work_dir=Path(os.getenv("FEEDPREP_WORK_DIR", DEFAULT_WORK_DIR_NAME)).expanduser(),
            log_level=os.getenv("FEEDPREP_LOG_LEVEL", DEFAULT_LOG_LEVEL).upper(),
        )

    def require_redash_credentials(self) -> tuple[str, str]:
        """Return Redash base URL and API key, failing when absent.

        Returns:
            Pair of base URL and API key.

        Raises:
            FeedConfigError: If either value is missing.
        """
        if not self.redash_base_url or not self.redash_api_key:
            raise FeedConfigError(
                "Missing Redash configuration. Set REDASH_BASE_URL and REDASH_API_KEY "
                "in the environment or a .env file."
            )
        return self.redash_base_url, self.redash_api_key


def _parse_float(variable: str, raw_value: str) -> float:
    """Parse a float environment value.

    Args:
        variable: Environment variable name for error context.
        raw_value: Raw string from environment.

    Returns:
        Parsed float value.

    Raises:
        FeedConfigError: If value cannot be parsed into float.
    """
    try:
        return float(raw_value)
    except ValueError as error:
        raise FeedConfigError(
            f"Invalid {variable} value: expected number, got '{raw_value}'. "
            f"Set {variable} to a numeric value."
        ) from error


def _parse_int(variable: str, raw_value: str) -> int:
    """Parse an integer environment value.

    Args:
        variable: Environment variable name for error context.
        raw_value: Raw string from environment.

    Returns:
        Parsed integer value.

    Raises:
        FeedConfigError: If value cannot be parsed into int.
    """
    try:
        return int(raw_value)
    except ValueError as error:
        raise FeedConfigError(
            f"Invalid {variable} value: expected integer, got '{raw_value}'. "
            f"Set {variable} to a whole number."
        ) from error
