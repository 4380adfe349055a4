"""
Custom exceptions for cost report resolution and delivery.

Failures of the collaborators (billing source, narrative model, renderer,
artifact store) are transient from the caller's point of view: the
synchronous path reports them as a failed response and the deferred
path records them on the ledger row.
"""

from .utils.validators import ValidationError


class CostReportError(Exception):
    """Base exception for cost reporting."""
    pass


class TransientBackendError(CostReportError):
    """
    Raised when a required backend call fails.

    Never retried at the request level; a new request is the retry.
    """
    pass


class BillingDataError(TransientBackendError):
    """
    Raised when Cost Explorer retrieval fails.

    This can occur due to:
    - Throttling after client retries are exhausted
    - Invalid date ranges or dimensions rejected by the service
    - Authentication/authorization failures
    """
    pass


class NarrativeGenerationError(TransientBackendError):
    """Raised when the narrative model cannot be invoked or returns nothing."""
    pass


class RenderingError(TransientBackendError):
    """Raised when the report document cannot be rendered."""
    pass


class ArtifactStoreError(TransientBackendError):
    """Raised when the rendered report cannot be stored."""
    pass


class NotificationError(CostReportError):
    """
    Raised when an email notification cannot be sent.

    Callers log it and carry on; report state never depends on delivery.
    """
    pass


class CacheStoreError(CostReportError):
    """
    Raised when the result cache cannot be read or written.

    Reads fail open (treated as a miss); writes are logged and ignored.
    """
    pass


class SchedulingError(CostReportError):
    """Raised when a scheduled report rule cannot be created."""
    pass


class IncidentLookupError(CostReportError):
    """Raised when incident records cannot be listed."""
    pass


class IntentTranslationError(ValidationError, CostReportError):
    """
    Raised when free text cannot be turned into a structured query.

    Treated as invalid input, never retried.
    """

    def __init__(self, message: str, field: str = 'message'):
        super().__init__(message, field=field)
