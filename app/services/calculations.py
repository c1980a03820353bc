"""Money arithmetic, invoice numbering and dashboard statistics.

Everything here is pure: no storage access and no logging. Amounts are
carried as :class:`~decimal.Decimal` and only rounded to cents at the point
where a value is stored.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, List, Mapping, Sequence, Tuple, Union

from app.schemas.invoice import InvoiceStatus
from app.schemas.stats import InvoiceStats

CENT = Decimal("0.01")
HUNDRED = Decimal("100")
DEFAULT_INVOICE_PREFIX = "INV-"
DEFAULT_INVOICE_WIDTH = 3

Number = Union[Decimal, int, float, str]


def to_decimal(value: Number) -> Decimal:
    if isinstance(value, Decimal):
        return value
    # str() keeps floats like 0.1 from dragging in their binary expansion
    return Decimal(str(value))


def round_money(value: Number) -> Decimal:
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def format_money(value: Number) -> str:
    return f"{round_money(value):.2f}"


def format_rate(value: Number) -> str:
    """Exact decimal string for a rate, padded to at least two places."""
    rate = to_decimal(value).normalize()
    if rate.as_tuple().exponent >= -2:
        return f"{rate.quantize(CENT):.2f}"
    return f"{rate:f}"


def line_amount(quantity: int, rate: Number) -> Decimal:
    """Exact (unrounded) amount for a single line item."""
    return Decimal(int(quantity)) * to_decimal(rate)


@dataclass(frozen=True)
class InvoiceTotals:
    subtotal: Decimal
    tax_rate: Decimal
    tax_amount: Decimal
    total: Decimal
    amounts: Tuple[Decimal, ...] = ()

    def as_record(self) -> dict:
        return {
            "subtotal": format_money(self.subtotal),
            "tax_rate": format_rate(self.tax_rate),
            "tax_amount": format_money(self.tax_amount),
            "total": format_money(self.total),
        }


def calculate_totals(
    items: Iterable[Tuple[int, Number]], tax_rate: Number
) -> InvoiceTotals:
    """Compute subtotal, tax and total for ``(quantity, rate)`` pairs.

    The subtotal is summed from exact line amounts and rounded once. The tax
    amount is rounded from the rounded subtotal, so the stored values always
    satisfy ``total == subtotal + tax_amount``.
    """
    amounts = tuple(line_amount(quantity, rate) for quantity, rate in items)
    rate = to_decimal(tax_rate)
    subtotal = round_money(sum(amounts, Decimal("0")))
    tax_amount = round_money(subtotal * rate / HUNDRED)
    return InvoiceTotals(
        subtotal=subtotal,
        tax_rate=rate,
        tax_amount=tax_amount,
        total=subtotal + tax_amount,
        amounts=tuple(round_money(amount) for amount in amounts),
    )


def parse_invoice_number(
    invoice_number: str, prefix: str = DEFAULT_INVOICE_PREFIX
) -> int | None:
    """Return the numeric suffix of ``invoice_number`` or ``None`` if malformed."""
    if not invoice_number.startswith(prefix):
        return None
    suffix = invoice_number[len(prefix):]
    if not suffix.isascii() or not suffix.isdigit():
        return None
    return int(suffix)


def next_invoice_number(
    existing: Iterable[str],
    *,
    prefix: str = DEFAULT_INVOICE_PREFIX,
    width: int = DEFAULT_INVOICE_WIDTH,
) -> str:
    """Return ``max(existing suffixes) + 1`` formatted as ``PREFIX-NNN``.

    Gaps are not reused and numbers that do not parse are skipped.
    """
    parsed = [parse_invoice_number(number, prefix) for number in existing]
    highest = max((number for number in parsed if number is not None), default=0)
    return f"{prefix}{str(highest + 1).zfill(width)}"


def summarize_invoices(invoices: Sequence[Mapping[str, object]]) -> InvoiceStats:
    """Aggregate dashboard statistics from invoice records."""
    statuses: List[str] = [_status_value(invoice.get("status")) for invoice in invoices]
    revenue = sum(
        (
            to_decimal(str(invoice["total"]))
            for invoice, status in zip(invoices, statuses)
            if status == InvoiceStatus.PAID.value
        ),
        Decimal("0"),
    )
    return InvoiceStats(
        total_invoices=len(invoices),
        total_revenue=format_money(revenue),
        pending_invoices=statuses.count(InvoiceStatus.SENT.value),
        overdue_invoices=statuses.count(InvoiceStatus.OVERDUE.value),
    )


def _status_value(status: object) -> str:
    if isinstance(status, InvoiceStatus):
        return status.value
    return str(status)
