"""
Exception types for ConceptForge.

Every error raised on purpose derives from ConceptForgeError and carries
three pieces of help text that the API and CLI show to users:

- error_code: stable identifier such as "CF-INPUT-001"
- why_it_happened: one sentence on the cause
- how_to_fix: short list of things to try

Subclasses set these as class attributes; a single raise site may
override them through keyword arguments.

    ConceptForgeError
    ├── ValidationError          400 in the API
    │   ├── InvalidInputError
    │   └── ConfigValidationError
    └── ProcessingError          500 in the API
        ├── StageFailure
        └── EnrichmentError

    LowCoherenceWarning          metadata only, never raised
"""

from typing import Any, Dict, List, Optional

# Guards against cyclic __cause__/__context__ chains
MAX_CHAIN_DEPTH = 50


def get_root_cause(exc: BaseException) -> BaseException:
    """Innermost exception of a chain (``exc`` itself when unchained)."""
    current = exc
    for _ in range(MAX_CHAIN_DEPTH):
        inner = current.__cause__ or current.__context__
        if inner is None or inner is exc:
            break
        current = inner
    return current


class ConceptForgeError(Exception):
    """
    Root of the ConceptForge exception hierarchy.

    Example
    -------
        try:
            result = process_text(text)
        except ConceptForgeError as e:
            logger.error("Concept map failed", code=e.error_code, error=str(e))
    """

    error_code: str = "CF-ERR-000"
    why_it_happened: str = "An unexpected error occurred"
    how_to_fix: List[str] = ["Check the error message for details"]

    def __init__(
        self,
        message: str,
        *,
        error_code: Optional[str] = None,
        why_it_happened: Optional[str] = None,
        how_to_fix: Optional[List[str]] = None,
    ) -> None:
        super().__init__(message)
        overrides = {
            "error_code": error_code,
            "why_it_happened": why_it_happened,
            "how_to_fix": how_to_fix,
        }
        for name, value in overrides.items():
            if value is not None:
                setattr(self, name, value)

    def get_root_cause(self) -> BaseException:
        return get_root_cause(self)

    def to_dict(self) -> Dict[str, Any]:
        """Help text in the response shape (camelCase keys)."""
        return {
            "error": str(self),
            "errorCode": self.error_code,
            "why": self.why_it_happened,
            "howToFix": list(self.how_to_fix),
        }


# ============================================================================
# Validation Exceptions
# ============================================================================


class ValidationError(ConceptForgeError):
    """Base exception for rejected input or configuration."""

    error_code = "CF-VAL-000"
    why_it_happened = "The request did not pass validation"
    how_to_fix = ["Review the request fields and try again"]


class InvalidInputError(ValidationError):
    """
    Raised when the input text is empty, whitespace-only or not a string.

    Surfaced before any pipeline stage runs.
    """

    error_code = "CF-INPUT-001"
    why_it_happened = "Concept maps can only be built from non-empty text"
    how_to_fix = [
        "Provide the text to analyse in the 'text' field",
        "Make sure the text is a string, not a list or object",
    ]


class ConfigValidationError(ValidationError):
    """
    Raised when pipeline configuration is malformed.

    Attributes:
        field: Name of the offending configuration field, if known
    """

    error_code = "CF-CFG-001"
    why_it_happened = "A configuration value is out of range or of the wrong type"
    how_to_fix = [
        "Check the option types (maxConcepts must be a positive integer)",
        "Stage flags must be true or false",
    ]

    def __init__(self, message: str, field: Optional[str] = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.field = field


# ============================================================================
# Processing Exceptions
# ============================================================================


class ProcessingError(ConceptForgeError):
    """Base exception for failures while transforming text into a graph."""

    error_code = "CF-PROC-000"
    why_it_happened = "Concept map processing failed at some stage"
    how_to_fix = ["Try again with a shorter or simpler text"]


class StageFailure(ProcessingError):
    """
    Raised when an unexpected exception escapes a pipeline stage.

    The pipeline never returns a partially populated result; the original
    exception is chained as __cause__.

    Attributes:
        stage: Name of the stage that failed (e.g., "reasoning")
    """

    error_code = "CF-PROC-001"
    why_it_happened = "An internal error occurred while building the concept map"
    how_to_fix = [
        "Retry the request",
        "Disable the failing stage via the 'stages' option",
        "Report the issue with the input text attached",
    ]

    def __init__(self, stage: str, message: str, **kwargs: Any) -> None:
        super().__init__(f"Stage '{stage}' failed: {message}", **kwargs)
        self.stage = stage


class EnrichmentError(ProcessingError):
    """
    Raised by enrichers when a knowledge source cannot produce fields.

    The semantic enrichment runner catches it and substitutes empty
    enrichment for the affected concept.
    """

    error_code = "CF-PROC-002"
    why_it_happened = "A knowledge source failed to enrich a concept"
    how_to_fix = [
        "Check connectivity to the knowledge source",
        "Increase the enrichment timeout",
    ]


# ============================================================================
# Warnings
# ============================================================================


class LowCoherenceWarning(UserWarning):
    """
    Non-fatal signal that the resulting graph is poorly connected.

    Attached to result metadata; never changes control flow.
    """

    warning_type = "low_coherence"

    def __init__(self, score: float, threshold: float) -> None:
        self.score = score
        self.threshold = threshold
        super().__init__(
            f"The concept map has low coherence ({score:.2f} < {threshold:.2f}). "
            "Consider refining the input text."
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to metadata warning entry."""
        return {
            "type": self.warning_type,
            "message": str(self),
            "score": self.score,
        }


def get_error_info(exc: BaseException) -> Dict[str, Any]:
    """Describe any exception as ``{error, errorCode, why, howToFix}``.

    Exceptions outside the hierarchy get the generic help text.
    """
    if isinstance(exc, ConceptForgeError):
        return exc.to_dict()
    generic = ConceptForgeError(str(exc) or type(exc).__name__)
    return generic.to_dict()
