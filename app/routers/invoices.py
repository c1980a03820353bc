from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Response

from app.dependencies.services import get_invoice_service
from app.schemas.invoice import (
    InvoiceCreateRequest,
    InvoiceListResponse,
    InvoiceStatus,
    InvoiceStatusUpdate,
    InvoiceUpdateRequest,
    InvoiceWithLineItems,
    LineItem,
    LineItemInput,
    LineItemUpdate,
    NextInvoiceNumberResponse,
)
from app.services import InvoiceService

router = APIRouter()
line_items_router = APIRouter()

INVOICE_NOT_FOUND = "Invoice not found"
LINE_ITEM_NOT_FOUND = "Line item not found"


@router.get("", response_model=InvoiceListResponse)
async def list_invoices(
    status: Optional[InvoiceStatus] = None,
    search: Optional[str] = None,
    service: InvoiceService = Depends(get_invoice_service),
):
    return await service.list(status=status, search=search)


@router.post("", response_model=InvoiceWithLineItems, status_code=201)
async def create_invoice(
    req: InvoiceCreateRequest,
    service: InvoiceService = Depends(get_invoice_service),
):
    return await service.create(req)


# Declared before /{invoice_id} so the literal path wins.
@router.get("/next-number", response_model=NextInvoiceNumberResponse)
async def next_invoice_number(service: InvoiceService = Depends(get_invoice_service)):
    return NextInvoiceNumberResponse(invoice_number=await service.next_number())


@router.get("/by-number/{invoice_number}", response_model=InvoiceWithLineItems)
async def get_invoice_by_number(
    invoice_number: str,
    service: InvoiceService = Depends(get_invoice_service),
):
    invoice = await service.get_by_number(invoice_number)
    if invoice is None:
        raise HTTPException(status_code=404, detail=INVOICE_NOT_FOUND)
    return invoice


@router.get("/{invoice_id}", response_model=InvoiceWithLineItems)
async def get_invoice(
    invoice_id: str,
    service: InvoiceService = Depends(get_invoice_service),
):
    invoice = await service.get(invoice_id)
    if invoice is None:
        raise HTTPException(status_code=404, detail=INVOICE_NOT_FOUND)
    return invoice


@router.put("/{invoice_id}", response_model=InvoiceWithLineItems)
async def update_invoice(
    invoice_id: str,
    req: InvoiceUpdateRequest,
    service: InvoiceService = Depends(get_invoice_service),
):
    invoice = await service.update(invoice_id, req)
    if invoice is None:
        raise HTTPException(status_code=404, detail=INVOICE_NOT_FOUND)
    return invoice


@router.put("/{invoice_id}/status", response_model=InvoiceWithLineItems)
async def update_invoice_status(
    invoice_id: str,
    req: InvoiceStatusUpdate,
    service: InvoiceService = Depends(get_invoice_service),
):
    invoice = await service.update_status(invoice_id, req.status)
    if invoice is None:
        raise HTTPException(status_code=404, detail=INVOICE_NOT_FOUND)
    return invoice


@router.delete("/{invoice_id}", status_code=204)
async def delete_invoice(
    invoice_id: str,
    service: InvoiceService = Depends(get_invoice_service),
):
    if not await service.delete(invoice_id):
        raise HTTPException(status_code=404, detail=INVOICE_NOT_FOUND)
    return Response(status_code=204)


@router.get("/{invoice_id}/line-items", response_model=List[LineItem])
async def list_line_items(
    invoice_id: str,
    service: InvoiceService = Depends(get_invoice_service),
):
    line_items = await service.list_line_items(invoice_id)
    if line_items is None:
        raise HTTPException(status_code=404, detail=INVOICE_NOT_FOUND)
    return line_items


@router.post("/{invoice_id}/line-items", response_model=LineItem, status_code=201)
async def add_line_item(
    invoice_id: str,
    req: LineItemInput,
    service: InvoiceService = Depends(get_invoice_service),
):
    line_item = await service.add_line_item(invoice_id, req)
    if line_item is None:
        raise HTTPException(status_code=404, detail=INVOICE_NOT_FOUND)
    return line_item


@line_items_router.put("/{line_item_id}", response_model=LineItem)
async def update_line_item(
    line_item_id: str,
    req: LineItemUpdate,
    service: InvoiceService = Depends(get_invoice_service),
):
    line_item = await service.update_line_item(line_item_id, req)
    if line_item is None:
        raise HTTPException(status_code=404, detail=LINE_ITEM_NOT_FOUND)
    return line_item


@line_items_router.delete("/{line_item_id}", status_code=204)
async def delete_line_item(
    line_item_id: str,
    service: InvoiceService = Depends(get_invoice_service),
):
    if not await service.delete_line_item(line_item_id):
        raise HTTPException(status_code=404, detail=LINE_ITEM_NOT_FOUND)
    return Response(status_code=204)
