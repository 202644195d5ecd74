"""Exceptions and store-error classification."""

import json
from typing import Optional

from kubernetes.client.exceptions import ApiException


class OperatorUtilsError(Exception):
    """Base class for errors raised by operator_utils."""


class InvalidObjectError(OperatorUtilsError, TypeError):
    """Raised when a value is not an identified, storable object."""

    def __init__(self, value: object):
        self.value = value
        super().__init__(f"{type(value).__name__} is not a ManagedObject")


class OwnershipError(OperatorUtilsError):
    """Raised when a controller owner reference cannot be set."""


class AlreadyOwnedError(OwnershipError):
    """Raised when an object is already controlled by a different owner."""

    def __init__(self, object_name: str, current_owner: dict):
        self.object_name = object_name
        self.current_owner = current_owner
        super().__init__(
            f"Object {object_name} is already owned by another "
            f"{current_owner.get('kind')} controller {current_owner.get('name')}"
        )


class StatusPersistError(OperatorUtilsError):
    """Raised when the status subresource write fails."""


class TemplateError(OperatorUtilsError):
    """Raised when a template cannot be expanded into a list of objects."""


def api_status_reason(error: ApiException) -> Optional[str]:
    """
    Get the Kubernetes Status reason carried by an API error.

    The reason in the response body (e.g. ``AlreadyExists``) takes
    precedence over the HTTP reason phrase.

    Args:
        error: API exception

    Returns:
        Status reason or None
    """
    body = getattr(error, "body", None)
    if body:
        try:
            status = json.loads(body)
        except (TypeError, ValueError):
            status = None
        if isinstance(status, dict) and status.get("reason"):
            return status["reason"]
    return getattr(error, "reason", None)


def is_not_found(error: BaseException) -> bool:
    """Check whether an error is a 404 from the object store."""
    return isinstance(error, ApiException) and error.status == 404


def is_already_exists(error: BaseException) -> bool:
    """Check whether an error reports that the object already exists."""
    return (
        isinstance(error, ApiException)
        and error.status == 409
        and api_status_reason(error) == "AlreadyExists"
    )


def is_conflict(error: BaseException) -> bool:
    """Check whether an error is a resource version conflict."""
    return (
        isinstance(error, ApiException)
        and error.status == 409
        and api_status_reason(error) != "AlreadyExists"
    )
