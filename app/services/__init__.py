"""Service package public API definitions.

Service classes are imported lazily on attribute access so that importing
``app.services.exceptions`` or ``app.services.calculations`` does not pull
in the storage layer and the schemas it depends on.
"""

from __future__ import annotations

from importlib import import_module
from typing import TYPE_CHECKING, Any

__all__ = [
    "ClientService",
    "InvoiceService",
    "InvoiceStorage",
    "MemoryStorage",
]

_SERVICE_MODULES = {
    "ClientService": "clients",
    "InvoiceService": "invoices",
    "InvoiceStorage": "storage",
    "MemoryStorage": "storage",
}


def __getattr__(name: str) -> Any:
    if name not in _SERVICE_MODULES:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

    module = import_module(f".{_SERVICE_MODULES[name]}", __name__)
    attr = getattr(module, name)
    globals()[name] = attr
    return attr


if TYPE_CHECKING:  # pragma: no cover - import for static analysis only
    from .clients import ClientService as ClientService
    from .invoices import InvoiceService as InvoiceService
    from .storage import InvoiceStorage as InvoiceStorage
    from .storage import MemoryStorage as MemoryStorage
