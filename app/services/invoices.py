from __future__ import annotations

import logging
from typing import List, Optional

from app.schemas.invoice import (
    InvoiceCreateRequest,
    InvoiceListResponse,
    InvoiceStatus,
    InvoiceUpdateRequest,
    InvoiceWithLineItems,
    LineItem,
    LineItemInput,
    LineItemUpdate,
)
from app.schemas.stats import InvoiceStats
from app.services.storage import InvoiceStorage

logger = logging.getLogger(__name__)


class InvoiceService:
    def __init__(self, storage: InvoiceStorage) -> None:
        self._storage = storage

    async def create(self, request: InvoiceCreateRequest) -> InvoiceWithLineItems:
        invoice = await self._storage.create_invoice(request)
        logger.info(
            "Created invoice %s for %s (total %s)",
            invoice.invoice_number,
            invoice.client_name,
            invoice.total,
        )
        return invoice

    async def get(self, invoice_id: str) -> Optional[InvoiceWithLineItems]:
        logger.debug("Fetching invoice %s", invoice_id)
        return await self._storage.get_invoice(invoice_id)

    async def get_by_number(self, invoice_number: str) -> Optional[InvoiceWithLineItems]:
        logger.debug("Fetching invoice by number %s", invoice_number)
        return await self._storage.get_invoice_by_number(invoice_number)

    async def list(
        self,
        *,
        status: InvoiceStatus | None = None,
        search: str | None = None,
    ) -> InvoiceListResponse:
        invoices = await self._storage.list_invoices()
        if status is not None:
            invoices = [invoice for invoice in invoices if invoice.status == status]
        if search:
            needle = search.strip().lower()
            invoices = [invoice for invoice in invoices if _matches(invoice, needle)]
        return InvoiceListResponse(total=len(invoices), items=invoices)

    async def update(
        self, invoice_id: str, request: InvoiceUpdateRequest
    ) -> Optional[InvoiceWithLineItems]:
        logger.info("Updating invoice %s", invoice_id)
        return await self._storage.update_invoice(invoice_id, request)

    async def update_status(
        self, invoice_id: str, status: InvoiceStatus
    ) -> Optional[InvoiceWithLineItems]:
        logger.info("Setting invoice %s status to %s", invoice_id, status.value)
        return await self._storage.update_invoice(
            invoice_id, InvoiceUpdateRequest(status=status)
        )

    async def delete(self, invoice_id: str) -> bool:
        logger.info("Deleting invoice %s", invoice_id)
        return await self._storage.delete_invoice(invoice_id)

    async def next_number(self) -> str:
        return await self._storage.next_invoice_number()

    async def list_line_items(self, invoice_id: str) -> Optional[List[LineItem]]:
        if await self._storage.get_invoice(invoice_id) is None:
            return None
        return await self._storage.list_line_items(invoice_id)

    async def add_line_item(
        self, invoice_id: str, request: LineItemInput
    ) -> Optional[LineItem]:
        logger.info("Adding line item to invoice %s", invoice_id)
        return await self._storage.create_line_item(invoice_id, request)

    async def update_line_item(
        self, line_item_id: str, request: LineItemUpdate
    ) -> Optional[LineItem]:
        logger.info("Updating line item %s", line_item_id)
        return await self._storage.update_line_item(line_item_id, request)

    async def delete_line_item(self, line_item_id: str) -> bool:
        logger.info("Deleting line item %s", line_item_id)
        return await self._storage.delete_line_item(line_item_id)

    async def stats(self) -> InvoiceStats:
        return await self._storage.invoice_stats()


def _matches(invoice: InvoiceWithLineItems, needle: str) -> bool:
    return any(
        needle in value.lower()
        for value in (invoice.invoice_number, invoice.client_name, invoice.client_email)
    )
