from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from app.schemas.client import EMAIL_PATTERN


class InvoiceStatus(str, Enum):
    DRAFT = "draft"
    SENT = "sent"
    PAID = "paid"
    OVERDUE = "overdue"


class LineItemInput(BaseModel):
    description: str = Field(..., min_length=1)
    quantity: int = Field(default=1, ge=1)
    rate: Decimal = Field(default=Decimal("0"), ge=0)


class LineItemUpdate(BaseModel):
    description: Optional[str] = Field(default=None, min_length=1)
    quantity: Optional[int] = Field(default=None, ge=1)
    rate: Optional[Decimal] = Field(default=None, ge=0)


class LineItem(BaseModel):
    id: str
    invoice_id: str
    description: str
    quantity: int
    rate: str
    amount: str


class InvoiceCreateRequest(BaseModel):
    client_id: Optional[str] = None
    client_name: str = Field(..., min_length=1)
    client_email: str = Field(..., pattern=EMAIL_PATTERN)
    client_address: Optional[str] = None
    issue_date: str = Field(..., min_length=1)
    due_date: Optional[str] = None
    tax_rate: Decimal = Field(default=Decimal("0"), ge=0, le=100)
    notes: Optional[str] = None
    line_items: List[LineItemInput] = Field(..., min_length=1)


class InvoiceUpdateRequest(BaseModel):
    """Partial invoice update.

    ``line_items``, when present, replaces every line item on the invoice.
    """

    client_id: Optional[str] = None
    client_name: Optional[str] = Field(default=None, min_length=1)
    client_email: Optional[str] = Field(default=None, pattern=EMAIL_PATTERN)
    client_address: Optional[str] = None
    issue_date: Optional[str] = Field(default=None, min_length=1)
    due_date: Optional[str] = None
    status: Optional[InvoiceStatus] = None
    tax_rate: Optional[Decimal] = Field(default=None, ge=0, le=100)
    notes: Optional[str] = None
    line_items: Optional[List[LineItemInput]] = Field(default=None, min_length=1)


class InvoiceStatusUpdate(BaseModel):
    status: InvoiceStatus


class Invoice(BaseModel):
    id: str
    invoice_number: str
    client_id: Optional[str] = None
    client_name: str
    client_email: str
    client_address: Optional[str] = None
    issue_date: str
    due_date: Optional[str] = None
    status: InvoiceStatus = InvoiceStatus.DRAFT
    subtotal: str
    tax_rate: str
    tax_amount: str
    total: str
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class InvoiceWithLineItems(Invoice):
    line_items: List[LineItem] = Field(default_factory=list)


class InvoiceListResponse(BaseModel):
    total: int
    items: List[InvoiceWithLineItems]


class NextInvoiceNumberResponse(BaseModel):
    invoice_number: str
