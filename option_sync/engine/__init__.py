"""Engine components wiring fetch → extract → reconcile → store → notify."""

from .extractor import Extractor
from .fetcher import FetchRequest, FetchResponse, Fetcher
from .models import Operation, OperationKind, Option, stable_option_id
from .notifier import TelegramNotifier
from .reconciler import ApplyReport, ReconcileResult, apply_operations, options_equivalent, reconcile
from .store import BaseOptionStore, SQLiteOptionStore

__all__ = [
    "ApplyReport",
    "BaseOptionStore",
    "Extractor",
    "FetchRequest",
    "FetchResponse",
    "Fetcher",
    "Operation",
    "OperationKind",
    "Option",
    "ReconcileResult",
    "SQLiteOptionStore",
    "TelegramNotifier",
    "apply_operations",
    "options_equivalent",
    "reconcile",
    "stable_option_id",
]
