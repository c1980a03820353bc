from fastapi import APIRouter, Depends

from app.dependencies.services import get_invoice_service
from app.schemas.stats import InvoiceStats
from app.services import InvoiceService

router = APIRouter()


@router.get("/stats", response_model=InvoiceStats)
async def get_stats(service: InvoiceService = Depends(get_invoice_service)):
    return await service.stats()
