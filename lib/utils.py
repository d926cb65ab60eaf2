# =============================================================================
# lib/utils.py - Shared Utilities
# =============================================================================
# Common utilities used across the application.
# =============================================================================

import unicodedata
from datetime import date, datetime, timezone
from typing import Any
from uuid import UUID


# =============================================================================
# UUID Utilities
# =============================================================================

def normalize_uuid(value: str | UUID) -> str:
    """
    Normalize a UUID to string format.

    Handles both string and UUID objects, ensuring consistent string output.

    Args:
        value: UUID as string or UUID object

    Returns:
        String representation of the UUID

    Example:
        user_id = normalize_uuid(uuid_obj)  # "550e8400-..."
        user_id = normalize_uuid("550e8400-...")  # "550e8400-..."
    """
    return str(value) if isinstance(value, UUID) else value


# =============================================================================
# Text Utilities
# =============================================================================

def strip_accents(text: str) -> str:
    """Remove combining diacritic marks ("Goiânia" -> "Goiania")."""
    decomposed = unicodedata.normalize("NFD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def normalize_text(value: Any) -> str:
    """
    Normalize free text for comparisons.

    Lowercases, strips diacritics and trims surrounding whitespace.
    Internal whitespace is left untouched, so "plus  size" and "plus size"
    stay distinct.

    Args:
        value: Any value (None becomes "")

    Returns:
        Normalized string

    Example:
        normalize_text("  Médio ")  # "medio"
    """
    if value is None:
        return ""
    return strip_accents(str(value).lower()).strip()


def split_multi_value(value: str | None) -> list[str]:
    """
    Split a comma separated cell into trimmed, non-empty tokens.

    Example:
        split_multi_value("pix, cartão,, boleto")  # ["pix", "cartão", "boleto"]
    """
    if not value:
        return []
    return [token.strip() for token in value.split(",") if token.strip()]


# =============================================================================
# Timestamp Utilities
# =============================================================================

def parse_timestamp(value: Any) -> datetime | None:
    """
    Parse a timestamp read from Supabase into an aware UTC-based datetime.

    Accepts datetimes, dates and ISO strings ("Z" suffix, date-only, with or
    without an offset). Values without an offset are taken as UTC.

    Raises:
        ValueError: If a string is not ISO formatted

    Example:
        parse_timestamp("2026-10-22")            # 2026-10-22 00:00:00+00:00
        parse_timestamp("2026-10-22T10:00:00Z")  # 2026-10-22 10:00:00+00:00
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    else:
        parsed = datetime.fromisoformat(str(value).strip().replace("Z", "+00:00"))

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


# =============================================================================
# Base Error Class
# =============================================================================

class ApplicationError(Exception):
    """
    Base error class for application-specific errors.

    Provides actionable error messages following the principle:
    "Errors should tell HOW to fix, not just WHAT failed."

    Attributes:
        code: Error code for categorization
        message: Human-readable error message
        suggestion: Actionable suggestion for fixing the error
        details: Additional context for debugging

    Example:
        class MyServiceError(ApplicationError):
            def __init__(self, message: str, **kwargs):
                super().__init__(message, code="MY_SERVICE_ERROR", **kwargs)
    """

    def __init__(
        self,
        message: str,
        code: str = "APPLICATION_ERROR",
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.suggestion = suggestion
        self.details = details or {}

    def __str__(self) -> str:
        result = f"[{self.code}] {self.message}"
        if self.suggestion:
            result += f"\n  Suggestion: {self.suggestion}"
        return result

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for API responses."""
        return {
            "code": self.code,
            "message": self.message,
            "suggestion": self.suggestion,
            "details": self.details,
        }
