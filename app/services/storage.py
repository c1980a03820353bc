from __future__ import annotations

import asyncio
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Protocol, runtime_checkable

from app.schemas.client import Client, ClientCreate, ClientUpdate
from app.schemas.invoice import (
    InvoiceCreateRequest,
    InvoiceStatus,
    InvoiceUpdateRequest,
    InvoiceWithLineItems,
    LineItem,
    LineItemInput,
    LineItemUpdate,
)
from app.schemas.stats import InvoiceStats
from app.services.calculations import (
    DEFAULT_INVOICE_PREFIX,
    DEFAULT_INVOICE_WIDTH,
    calculate_totals,
    format_money,
    format_rate,
    next_invoice_number,
    summarize_invoices,
    to_decimal,
)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


_REQUIRED_CLIENT_FIELDS = frozenset({"name", "email"})
_REQUIRED_INVOICE_FIELDS = frozenset({"client_name", "client_email", "issue_date", "status"})


def _drop_required_nulls(changes: Dict[str, object], required: frozenset) -> Dict[str, object]:
    # explicit nulls may clear optional fields but never required ones
    return {
        key: value
        for key, value in changes.items()
        if value is not None or key not in required
    }


@runtime_checkable
class InvoiceStorage(Protocol):
    """Operations the service layer needs from a storage backend.

    Lookups signal absence with ``None`` (or ``False`` for deletes) rather
    than raising.
    """

    async def get_client(self, client_id: str) -> Optional[Client]: ...

    async def get_client_by_email(self, email: str) -> Optional[Client]: ...

    async def create_client(self, request: ClientCreate) -> Client: ...

    async def list_clients(self) -> List[Client]: ...

    async def update_client(
        self, client_id: str, request: ClientUpdate
    ) -> Optional[Client]: ...

    async def delete_client(self, client_id: str) -> bool: ...

    async def get_invoice(self, invoice_id: str) -> Optional[InvoiceWithLineItems]: ...

    async def get_invoice_by_number(
        self, invoice_number: str
    ) -> Optional[InvoiceWithLineItems]: ...

    async def create_invoice(
        self, request: InvoiceCreateRequest
    ) -> InvoiceWithLineItems: ...

    async def list_invoices(self) -> List[InvoiceWithLineItems]: ...

    async def update_invoice(
        self, invoice_id: str, request: InvoiceUpdateRequest
    ) -> Optional[InvoiceWithLineItems]: ...

    async def delete_invoice(self, invoice_id: str) -> bool: ...

    async def next_invoice_number(self) -> str: ...

    async def list_line_items(self, invoice_id: str) -> List[LineItem]: ...

    async def create_line_item(
        self, invoice_id: str, request: LineItemInput
    ) -> Optional[LineItem]: ...

    async def update_line_item(
        self, line_item_id: str, request: LineItemUpdate
    ) -> Optional[LineItem]: ...

    async def delete_line_item(self, line_item_id: str) -> bool: ...

    async def invoice_stats(self) -> InvoiceStats: ...


@runtime_checkable
class BrowsableStorage(Protocol):
    """Optional capability: backends that can dump every record for display."""

    def snapshot(self) -> Dict[str, List[Dict[str, object]]]: ...


class MemoryStorage:
    """Dict-backed storage.

    Every mutation runs under one ``asyncio.Lock`` so invoice numbering and
    insertion happen as a single step. Line item changes recompute the owning
    invoice's totals.
    """

    def __init__(
        self,
        *,
        invoice_prefix: str = DEFAULT_INVOICE_PREFIX,
        invoice_width: int = DEFAULT_INVOICE_WIDTH,
    ) -> None:
        self._invoice_prefix = invoice_prefix
        self._invoice_width = invoice_width
        self._clients: Dict[str, Dict[str, object]] = {}
        self._invoices: Dict[str, Dict[str, object]] = {}
        self._line_items: Dict[str, Dict[str, object]] = {}
        self._lock = asyncio.Lock()

    # Clients

    async def get_client(self, client_id: str) -> Optional[Client]:
        record = self._clients.get(client_id)
        return Client(**record) if record is not None else None

    async def get_client_by_email(self, email: str) -> Optional[Client]:
        for record in self._clients.values():
            if record["email"] == email:
                return Client(**record)
        return None

    async def create_client(self, request: ClientCreate) -> Client:
        async with self._lock:
            client_id = _new_id()
            record = {
                "id": client_id,
                "name": request.name,
                "email": request.email,
                "address": request.address or None,
                "created_at": _utc_now(),
            }
            self._clients[client_id] = record
            return Client(**record)

    async def list_clients(self) -> List[Client]:
        records = sorted(
            self._clients.values(), key=lambda record: record["created_at"], reverse=True
        )
        return [Client(**record) for record in records]

    async def update_client(
        self, client_id: str, request: ClientUpdate
    ) -> Optional[Client]:
        async with self._lock:
            record = self._clients.get(client_id)
            if record is None:
                return None
            changes = request.model_dump(exclude_unset=True)
            record.update(_drop_required_nulls(changes, _REQUIRED_CLIENT_FIELDS))
            return Client(**record)

    async def delete_client(self, client_id: str) -> bool:
        async with self._lock:
            return self._clients.pop(client_id, None) is not None

    # Invoices

    async def get_invoice(self, invoice_id: str) -> Optional[InvoiceWithLineItems]:
        record = self._invoices.get(invoice_id)
        return self._with_line_items(record) if record is not None else None

    async def get_invoice_by_number(
        self, invoice_number: str
    ) -> Optional[InvoiceWithLineItems]:
        for record in self._invoices.values():
            if record["invoice_number"] == invoice_number:
                return self._with_line_items(record)
        return None

    async def create_invoice(
        self, request: InvoiceCreateRequest
    ) -> InvoiceWithLineItems:
        async with self._lock:
            invoice_id = _new_id()
            now = _utc_now()
            record: Dict[str, object] = {
                "id": invoice_id,
                "invoice_number": self._next_number(),
                "client_id": request.client_id,
                "client_name": request.client_name,
                "client_email": request.client_email,
                "client_address": request.client_address or None,
                "issue_date": request.issue_date,
                "due_date": request.due_date or None,
                "status": InvoiceStatus.DRAFT,
                "notes": request.notes or None,
                "created_at": now,
                "updated_at": now,
            }
            self._invoices[invoice_id] = record
            self._replace_line_items(invoice_id, request.line_items)
            self._refresh_totals(invoice_id, request.tax_rate)
            return self._with_line_items(record)

    async def list_invoices(self) -> List[InvoiceWithLineItems]:
        records = sorted(
            self._invoices.values(), key=lambda record: record["created_at"], reverse=True
        )
        return [self._with_line_items(record) for record in records]

    async def update_invoice(
        self, invoice_id: str, request: InvoiceUpdateRequest
    ) -> Optional[InvoiceWithLineItems]:
        async with self._lock:
            record = self._invoices.get(invoice_id)
            if record is None:
                return None

            changes = request.model_dump(exclude_unset=True, exclude={"line_items", "tax_rate"})
            record.update(_drop_required_nulls(changes, _REQUIRED_INVOICE_FIELDS))
            if request.line_items is not None:
                self._replace_line_items(invoice_id, request.line_items)
            self._refresh_totals(invoice_id, request.tax_rate)
            record["updated_at"] = _utc_now()
            return self._with_line_items(record)

    async def delete_invoice(self, invoice_id: str) -> bool:
        async with self._lock:
            for line_item_id in self._line_item_ids(invoice_id):
                del self._line_items[line_item_id]
            return self._invoices.pop(invoice_id, None) is not None

    async def next_invoice_number(self) -> str:
        return self._next_number()

    # Line items

    async def list_line_items(self, invoice_id: str) -> List[LineItem]:
        return [
            LineItem(**self._line_items[line_item_id])
            for line_item_id in self._line_item_ids(invoice_id)
        ]

    async def create_line_item(
        self, invoice_id: str, request: LineItemInput
    ) -> Optional[LineItem]:
        async with self._lock:
            if invoice_id not in self._invoices:
                return None
            record = self._insert_line_item(invoice_id, request)
            self._refresh_totals(invoice_id)
            return LineItem(**record)

    async def update_line_item(
        self, line_item_id: str, request: LineItemUpdate
    ) -> Optional[LineItem]:
        async with self._lock:
            record = self._line_items.get(line_item_id)
            if record is None:
                return None

            changes = request.model_dump(exclude_unset=True, exclude_none=True)
            if "description" in changes:
                record["description"] = changes["description"]
            if "quantity" in changes:
                record["quantity"] = changes["quantity"]
            if "rate" in changes:
                record["rate"] = format_rate(changes["rate"])
            self._refresh_totals(str(record["invoice_id"]))
            return LineItem(**record)

    async def delete_line_item(self, line_item_id: str) -> bool:
        async with self._lock:
            record = self._line_items.pop(line_item_id, None)
            if record is None:
                return False
            self._refresh_totals(str(record["invoice_id"]))
            return True

    # Statistics

    async def invoice_stats(self) -> InvoiceStats:
        return summarize_invoices(list(self._invoices.values()))

    # Internal helpers; callers hold the lock where they mutate.

    def _next_number(self) -> str:
        return next_invoice_number(
            (str(record["invoice_number"]) for record in self._invoices.values()),
            prefix=self._invoice_prefix,
            width=self._invoice_width,
        )

    def _line_item_ids(self, invoice_id: str) -> List[str]:
        return [
            line_item_id
            for line_item_id, record in self._line_items.items()
            if record["invoice_id"] == invoice_id
        ]

    def _insert_line_item(
        self, invoice_id: str, item: LineItemInput
    ) -> Dict[str, object]:
        line_item_id = _new_id()
        record: Dict[str, object] = {
            "id": line_item_id,
            "invoice_id": invoice_id,
            "description": item.description,
            "quantity": item.quantity,
            "rate": format_rate(item.rate),
            "amount": "0.00",
        }
        self._line_items[line_item_id] = record
        return record

    def _replace_line_items(
        self, invoice_id: str, items: Iterable[LineItemInput]
    ) -> None:
        for line_item_id in self._line_item_ids(invoice_id):
            del self._line_items[line_item_id]
        for item in items:
            self._insert_line_item(invoice_id, item)

    def _refresh_totals(
        self, invoice_id: str, tax_rate: Optional[Decimal] = None
    ) -> None:
        invoice = self._invoices.get(invoice_id)
        if invoice is None:
            return
        if tax_rate is None:
            tax_rate = to_decimal(str(invoice.get("tax_rate", "0")))

        line_records = [self._line_items[item_id] for item_id in self._line_item_ids(invoice_id)]
        totals = calculate_totals(
            ((int(record["quantity"]), to_decimal(str(record["rate"]))) for record in line_records),
            tax_rate,
        )
        for record, amount in zip(line_records, totals.amounts):
            record["amount"] = format_money(amount)
        invoice.update(totals.as_record())

    def _with_line_items(self, record: Dict[str, object]) -> InvoiceWithLineItems:
        line_items = [
            LineItem(**self._line_items[line_item_id])
            for line_item_id in self._line_item_ids(str(record["id"]))
        ]
        return InvoiceWithLineItems(**record, line_items=line_items)

    def snapshot(self) -> Dict[str, List[Dict[str, object]]]:
        """Copies of every stored record, grouped by collection."""
        return {
            "clients": [dict(record) for record in self._clients.values()],
            "invoices": [dict(record) for record in self._invoices.values()],
            "line_items": [dict(record) for record in self._line_items.values()],
        }


async def seed_sample_clients(storage: InvoiceStorage) -> None:
    """Populate a fresh store with a couple of demo clients."""
    samples = [
        ClientCreate(
            name="Acme Corporation",
            email="billing@acme.example",
            address="100 Market Street, Springfield",
        ),
        ClientCreate(name="Globex Ltd", email="accounts@globex.example"),
    ]
    for sample in samples:
        if await storage.get_client_by_email(sample.email) is None:
            await storage.create_client(sample)
