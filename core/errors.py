"""Error taxonomy for the substitution engine.

Every failure the engine can surface derives from SubstitutionError and carries
a stable code plus the HTTP status the API layer responds with:

- VALIDATION_ERROR: bad or missing modality, malformed session or block shape
- INSUFFICIENT_DATA: load cannot be computed from the session fields
- INVALID_CONVERSION: no usable time factor for a modality pair and zone
- NO_SUITABLE_TEMPLATES: catalog filtering produced no candidates
- SAFETY_BLOCKED: every scaled candidate was rejected by the guardrails
"""

from __future__ import annotations


class SubstitutionError(Exception):
    """Base class for engine failures.

    Attributes:
        code: Machine-readable error code.
        status_code: HTTP status the API maps this error to.
    """

    code = "SUBSTITUTION_ERROR"
    status_code = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(SubstitutionError):
    code = "VALIDATION_ERROR"
    status_code = 400


class InsufficientDataError(SubstitutionError):
    code = "INSUFFICIENT_DATA"
    status_code = 500


class InvalidConversionError(SubstitutionError):
    code = "INVALID_CONVERSION"
    status_code = 500


class NoSuitableTemplatesError(SubstitutionError):
    code = "NO_SUITABLE_TEMPLATES"
    status_code = 404


class SafetyBlockedError(SubstitutionError):
    code = "SAFETY_BLOCKED"
    status_code = 422
