from pydantic import BaseModel


class InvoiceStats(BaseModel):
    total_invoices: int
    total_revenue: str
    pending_invoices: int
    overdue_invoices: int
