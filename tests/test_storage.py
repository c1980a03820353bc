import asyncio
import os
import sys
from decimal import Decimal

import pytest

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from app.schemas.client import ClientCreate, ClientUpdate
from app.schemas.invoice import (
    InvoiceCreateRequest,
    InvoiceStatus,
    InvoiceUpdateRequest,
    LineItemInput,
    LineItemUpdate,
)
from app.services.storage import (
    BrowsableStorage,
    InvoiceStorage,
    MemoryStorage,
    seed_sample_clients,
)


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


def _invoice_request(**overrides) -> InvoiceCreateRequest:
    payload = {
        "client_name": "Acme Corporation",
        "client_email": "billing@acme.example",
        "issue_date": "2025-01-15",
        "due_date": "2025-02-14",
        "tax_rate": Decimal("10"),
        "line_items": [
            LineItemInput(description="Design work", quantity=2, rate=Decimal("50")),
            LineItemInput(description="Hosting", quantity=1, rate=Decimal("25.50")),
        ],
    }
    payload.update(overrides)
    return InvoiceCreateRequest(**payload)


def test_memory_storage_satisfies_storage_protocol(storage: MemoryStorage) -> None:
    assert isinstance(storage, InvoiceStorage)


def test_create_invoice_assigns_number_and_totals(storage: MemoryStorage) -> None:
    invoice = asyncio.run(storage.create_invoice(_invoice_request()))

    assert invoice.invoice_number == "INV-001"
    assert invoice.status == InvoiceStatus.DRAFT
    assert invoice.subtotal == "125.50"
    assert invoice.tax_rate == "10.00"
    assert invoice.tax_amount == "12.55"
    assert invoice.total == "138.05"
    assert [item.amount for item in invoice.line_items] == ["100.00", "25.50"]
    assert [item.rate for item in invoice.line_items] == ["50.00", "25.50"]
    assert all(item.invoice_id == invoice.id for item in invoice.line_items)


def test_invoice_numbers_are_sequential(storage: MemoryStorage) -> None:
    first = asyncio.run(storage.create_invoice(_invoice_request()))
    second = asyncio.run(storage.create_invoice(_invoice_request()))

    assert first.invoice_number == "INV-001"
    assert second.invoice_number == "INV-002"
    assert asyncio.run(storage.next_invoice_number()) == "INV-003"


def test_next_number_skips_gaps_and_malformed_numbers(storage: MemoryStorage) -> None:
    first = asyncio.run(storage.create_invoice(_invoice_request()))
    second = asyncio.run(storage.create_invoice(_invoice_request()))
    asyncio.run(storage.create_invoice(_invoice_request()))

    asyncio.run(storage.delete_invoice(second.id))
    assert asyncio.run(storage.next_invoice_number()) == "INV-004"

    storage._invoices[first.id]["invoice_number"] = "INV-ABC"
    assert asyncio.run(storage.next_invoice_number()) == "INV-004"


def test_concurrent_creates_get_unique_numbers(storage: MemoryStorage) -> None:
    async def create_many():
        return await asyncio.gather(
            *(storage.create_invoice(_invoice_request()) for _ in range(10))
        )

    invoices = asyncio.run(create_many())
    numbers = {invoice.invoice_number for invoice in invoices}

    assert len(numbers) == 10
    assert "INV-010" in numbers


def test_custom_prefix_and_width() -> None:
    storage = MemoryStorage(invoice_prefix="FAC-", invoice_width=5)
    invoice = asyncio.run(storage.create_invoice(_invoice_request()))
    assert invoice.invoice_number == "FAC-00001"


def test_lookup_missing_records_returns_none(storage: MemoryStorage) -> None:
    assert asyncio.run(storage.get_invoice("missing")) is None
    assert asyncio.run(storage.get_invoice_by_number("INV-999")) is None
    assert asyncio.run(storage.get_client("missing")) is None
    assert asyncio.run(storage.update_client("missing", ClientUpdate(name="x"))) is None
    assert asyncio.run(storage.update_invoice("missing", InvoiceUpdateRequest())) is None
    assert asyncio.run(storage.update_line_item("missing", LineItemUpdate(quantity=2))) is None
    assert asyncio.run(storage.create_line_item("missing", LineItemInput(description="x"))) is None
    assert asyncio.run(storage.delete_invoice("missing")) is False
    assert asyncio.run(storage.delete_line_item("missing")) is False
    assert asyncio.run(storage.delete_client("missing")) is False


def test_get_invoice_by_number_includes_line_items(storage: MemoryStorage) -> None:
    created = asyncio.run(storage.create_invoice(_invoice_request()))
    found = asyncio.run(storage.get_invoice_by_number("INV-001"))

    assert found is not None
    assert found.id == created.id
    assert len(found.line_items) == 2


def test_delete_invoice_cascades_to_line_items(storage: MemoryStorage) -> None:
    invoice = asyncio.run(storage.create_invoice(_invoice_request()))
    other = asyncio.run(storage.create_invoice(_invoice_request()))

    assert asyncio.run(storage.delete_invoice(invoice.id)) is True
    assert asyncio.run(storage.list_line_items(invoice.id)) == []
    assert asyncio.run(storage.get_invoice(invoice.id)) is None
    assert len(asyncio.run(storage.list_line_items(other.id))) == 2
    assert asyncio.run(storage.delete_invoice(invoice.id)) is False


def test_line_item_changes_recompute_invoice_totals(storage: MemoryStorage) -> None:
    invoice = asyncio.run(storage.create_invoice(_invoice_request()))

    added = asyncio.run(
        storage.create_line_item(
            invoice.id, LineItemInput(description="Support", quantity=3, rate=Decimal("10"))
        )
    )
    assert added is not None
    assert added.amount == "30.00"
    refreshed = asyncio.run(storage.get_invoice(invoice.id))
    assert refreshed.subtotal == "155.50"
    assert refreshed.tax_amount == "15.55"
    assert refreshed.total == "171.05"

    updated = asyncio.run(storage.update_line_item(added.id, LineItemUpdate(quantity=1)))
    assert updated.amount == "10.00"
    assert asyncio.run(storage.get_invoice(invoice.id)).subtotal == "135.50"

    assert asyncio.run(storage.delete_line_item(added.id)) is True
    assert asyncio.run(storage.get_invoice(invoice.id)).total == "138.05"


def test_stored_totals_match_stored_line_items(storage: MemoryStorage) -> None:
    invoice = asyncio.run(
        storage.create_invoice(
            _invoice_request(
                tax_rate=Decimal("8.25"),
                line_items=[
                    LineItemInput(description="A", quantity=3, rate=Decimal("19.99")),
                    LineItemInput(description="B", quantity=7, rate=Decimal("0.33")),
                ],
            )
        )
    )

    subtotal = sum(Decimal(item.amount) for item in invoice.line_items)
    assert abs(subtotal - Decimal(invoice.subtotal)) <= Decimal("0.01")
    assert Decimal(invoice.total) == Decimal(invoice.subtotal) + Decimal(invoice.tax_amount)


def test_update_invoice_recomputes_on_tax_and_line_item_changes(storage: MemoryStorage) -> None:
    invoice = asyncio.run(storage.create_invoice(_invoice_request()))

    taxed = asyncio.run(
        storage.update_invoice(invoice.id, InvoiceUpdateRequest(tax_rate=Decimal("20")))
    )
    assert taxed.tax_rate == "20.00"
    assert taxed.tax_amount == "25.10"
    assert taxed.total == "150.60"

    replaced = asyncio.run(
        storage.update_invoice(
            invoice.id,
            InvoiceUpdateRequest(
                line_items=[LineItemInput(description="Retainer", quantity=1, rate=Decimal("200"))]
            ),
        )
    )
    assert len(replaced.line_items) == 1
    assert replaced.subtotal == "200.00"
    assert replaced.total == "240.00"
    assert len(asyncio.run(storage.list_line_items(invoice.id))) == 1


def test_update_invoice_merges_fields_and_bumps_timestamp(storage: MemoryStorage) -> None:
    invoice = asyncio.run(storage.create_invoice(_invoice_request(notes="Thanks")))

    updated = asyncio.run(
        storage.update_invoice(
            invoice.id,
            InvoiceUpdateRequest(status=InvoiceStatus.SENT, notes=None, client_name=None),
        )
    )

    assert updated.status == InvoiceStatus.SENT
    assert updated.notes is None
    assert updated.client_name == "Acme Corporation"
    assert updated.invoice_number == invoice.invoice_number
    assert updated.updated_at >= invoice.updated_at


def test_invoice_stats(storage: MemoryStorage) -> None:
    line = [LineItemInput(description="Work", quantity=1, rate=Decimal("100"))]
    half = [LineItemInput(description="Work", quantity=1, rate=Decimal("50"))]
    no_tax = {"tax_rate": Decimal("0")}
    paid_100 = asyncio.run(storage.create_invoice(_invoice_request(line_items=line, **no_tax)))
    paid_50 = asyncio.run(storage.create_invoice(_invoice_request(line_items=half, **no_tax)))
    sent = asyncio.run(storage.create_invoice(_invoice_request(**no_tax)))
    overdue = asyncio.run(storage.create_invoice(_invoice_request(**no_tax)))

    for invoice, status in (
        (paid_100, InvoiceStatus.PAID),
        (paid_50, InvoiceStatus.PAID),
        (sent, InvoiceStatus.SENT),
        (overdue, InvoiceStatus.OVERDUE),
    ):
        asyncio.run(storage.update_invoice(invoice.id, InvoiceUpdateRequest(status=status)))

    stats = asyncio.run(storage.invoice_stats())

    assert stats.total_invoices == 4
    assert stats.total_revenue == "150.00"
    assert stats.pending_invoices == 1
    assert stats.overdue_invoices == 1


def test_client_lifecycle_does_not_touch_invoices(storage: MemoryStorage) -> None:
    client = asyncio.run(
        storage.create_client(ClientCreate(name="Globex", email="ap@globex.example", address=""))
    )
    assert client.address is None
    assert asyncio.run(storage.get_client_by_email("ap@globex.example")).id == client.id

    updated = asyncio.run(
        storage.update_client(client.id, ClientUpdate(address="1 Main St", name=None))
    )
    assert updated.address == "1 Main St"
    assert updated.name == "Globex"

    invoice = asyncio.run(storage.create_invoice(_invoice_request(client_id=client.id)))
    assert asyncio.run(storage.delete_client(client.id)) is True
    assert asyncio.run(storage.get_client(client.id)) is None

    kept = asyncio.run(storage.get_invoice(invoice.id))
    assert kept.client_id == client.id
    assert kept.client_name == "Acme Corporation"


def test_seed_sample_clients_is_idempotent(storage: MemoryStorage) -> None:
    asyncio.run(seed_sample_clients(storage))
    asyncio.run(seed_sample_clients(storage))

    clients = asyncio.run(storage.list_clients())
    assert {client.email for client in clients} == {
        "billing@acme.example",
        "accounts@globex.example",
    }


def test_sub_cent_rates_are_rounded_only_at_the_stored_amount(storage: MemoryStorage) -> None:
    invoice = asyncio.run(
        storage.create_invoice(
            _invoice_request(
                tax_rate=Decimal("0"),
                line_items=[LineItemInput(description="Tokens", quantity=100, rate=Decimal("0.005"))],
            )
        )
    )

    assert invoice.line_items[0].rate == "0.005"
    assert invoice.line_items[0].amount == "0.50"
    assert invoice.subtotal == "0.50"
    assert invoice.total == "0.50"


def test_subtotal_is_rounded_once_when_stored(storage: MemoryStorage) -> None:
    invoice = asyncio.run(
        storage.create_invoice(
            _invoice_request(
                tax_rate=Decimal("0"),
                line_items=[
                    LineItemInput(description=f"Part {n}", quantity=1, rate=Decimal("0.005"))
                    for n in range(3)
                ],
            )
        )
    )

    assert invoice.subtotal == "0.02"
    assert invoice.total == "0.02"


def test_sub_cent_tax_rate_survives_line_item_edits(storage: MemoryStorage) -> None:
    invoice = asyncio.run(
        storage.create_invoice(
            _invoice_request(
                tax_rate=Decimal("7.125"),
                line_items=[LineItemInput(description="Licence", quantity=1, rate=Decimal("1000"))],
            )
        )
    )
    assert invoice.tax_rate == "7.125"
    assert invoice.tax_amount == "71.25"
    assert invoice.total == "1071.25"

    updated = asyncio.run(
        storage.update_line_item(
            invoice.line_items[0].id, LineItemUpdate(quantity=8, rate=Decimal("0.125"))
        )
    )
    assert updated.rate == "0.125"
    assert updated.amount == "1.00"

    refreshed = asyncio.run(storage.get_invoice(invoice.id))
    assert refreshed.subtotal == "1.00"
    assert refreshed.tax_rate == "7.125"
    assert refreshed.tax_amount == "0.07"
    assert refreshed.total == "1.07"


def test_memory_storage_is_browsable(storage: MemoryStorage) -> None:
    assert isinstance(storage, BrowsableStorage)
    assert set(storage.snapshot()) == {"clients", "invoices", "line_items"}
