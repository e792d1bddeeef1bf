# dental_app_pkg/errors.py
"""
Error taxonomy shared by the store adapters, services and routes.

Every error carries a short title and description so the routes can turn it
into a toast-style notice without knowing where it came from.
"""


class DentalAppError(Exception):
    status_code = 500
    title = "Error"

    def __init__(self, description, title=None, status_code=None):
        super().__init__(description)
        self.description = description
        if title is not None:
            self.title = title
        if status_code is not None:
            self.status_code = status_code


class FetchError(DentalAppError):
    """A read against the store failed. Callers keep their previous state."""
    status_code = 503


class TransitionError(DentalAppError):
    """A write was refused, either by the state machine or by the store."""
    status_code = 409


class ValidationError(DentalAppError):
    """A precondition failed before any store call was issued."""
    status_code = 400


class NotFoundError(DentalAppError):
    status_code = 404
    title = "Not Found"


class AccessDeniedError(DentalAppError):
    status_code = 403
    title = "Access Denied"


class ExternalServiceError(DentalAppError):
    """The cloud storage proxy answered with an error or could not be reached."""
    status_code = 502


class PartialAggregationError(DentalAppError):
    """
    One satellite collection of a dossier could not be read.

    Never raised out of the aggregator: instances are collected on the dossier
    so the caller can see which slices were rendered empty.
    """
    status_code = 206

    def __init__(self, collection, cause):
        super().__init__(f"Failed to load {collection.replace('_', ' ')}", title="Partial dossier")
        self.collection = collection
        self.cause = cause
