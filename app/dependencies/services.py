from __future__ import annotations

from fastapi import Depends, Request

from app.config import Settings
from app.services import ClientService, InvoiceService
from app.services.storage import InvoiceStorage, MemoryStorage


def build_storage(settings: Settings) -> MemoryStorage:
    return MemoryStorage(
        invoice_prefix=settings.invoice_number_prefix,
        invoice_width=settings.invoice_number_width,
    )


def get_storage(request: Request) -> InvoiceStorage:
    storage = getattr(request.app.state, "storage", None)
    if storage is None:
        raise RuntimeError("Storage has not been attached to the application")
    return storage


def get_client_service(
    storage: InvoiceStorage = Depends(get_storage),
) -> ClientService:
    return ClientService(storage)


def get_invoice_service(
    storage: InvoiceStorage = Depends(get_storage),
) -> InvoiceService:
    return InvoiceService(storage)
