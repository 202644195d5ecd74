"""Operator utilities - idempotent resource synchronization and reconcile backoff."""

from .backoff import BackoffScheduler, round_to_unit
from .cluster import ClusterConnection
from .config import LOG_FORMAT, Settings, configure_logging, get_settings
from .errors import (
    AlreadyOwnedError,
    InvalidObjectError,
    OperatorUtilsError,
    OwnershipError,
    StatusPersistError,
    TemplateError,
    api_status_reason,
    is_already_exists,
    is_conflict,
    is_not_found,
)
from .events import EVENT_TYPE_NORMAL, EVENT_TYPE_WARNING, EventNotifier, KubernetesEventRecorder
from .models import ClusterConfig, ReconcileOutcome, ReconcileResult, ReconcileStatus
from .ownership import set_controller_reference
from .reconciler import PROCESSING_ERROR_REASON, ReconcilerBase
from .resource import ManagedObject, ReconcileStatusAware, Resource, StatusAwareResource
from .status import StatusTracker
from .store import KubernetesObjectStore, ObjectStore
from .synchronizer import ResourceSynchronizer
from .templates import process_template_array

__version__ = "0.1.0"

__all__ = [
    # Reconciliation
    "ReconcilerBase",
    "ResourceSynchronizer",
    "StatusTracker",
    "BackoffScheduler",
    "round_to_unit",
    "PROCESSING_ERROR_REASON",
    # Objects
    "ManagedObject",
    "ReconcileStatusAware",
    "Resource",
    "StatusAwareResource",
    "set_controller_reference",
    "process_template_array",
    # Store and events
    "ObjectStore",
    "KubernetesObjectStore",
    "ClusterConnection",
    "EventNotifier",
    "KubernetesEventRecorder",
    "EVENT_TYPE_NORMAL",
    "EVENT_TYPE_WARNING",
    # Models
    "ClusterConfig",
    "ReconcileOutcome",
    "ReconcileResult",
    "ReconcileStatus",
    # Configuration
    "Settings",
    "get_settings",
    "LOG_FORMAT",
    "configure_logging",
    # Errors
    "OperatorUtilsError",
    "InvalidObjectError",
    "OwnershipError",
    "AlreadyOwnedError",
    "StatusPersistError",
    "TemplateError",
    "api_status_reason",
    "is_not_found",
    "is_already_exists",
    "is_conflict",
]
