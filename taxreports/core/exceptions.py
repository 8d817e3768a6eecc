"""
Domain errors raised by the report services.

Each carries the HTTP status the API answers with; the handler in
``taxreports.main`` turns them into ``{"detail": message}`` responses.
"""


class ReportError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(ReportError):
    """Missing, soft-deleted, or owned by another account. Callers cannot tell which."""

    status_code = 404

    def __init__(self, resource: str, identifier: object):
        super().__init__(f"{resource} {identifier} not found")
        self.resource = resource
        self.identifier = identifier


class ValidationError(ReportError):
    status_code = 400


class AggregationError(ReportError):
    status_code = 500


class RenderError(ReportError):
    status_code = 502


class StorageError(ReportError):
    status_code = 502
