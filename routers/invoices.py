# routers/invoices.py
from fastapi import APIRouter, Depends

from deps import get_current_user, get_pipeline
from models import User
from schemas import DownloadLink, InvoiceAccepted, InvoiceCreate, InvoiceRead
from services.invoice_pipeline import InvoicePipeline

router = APIRouter(prefix="/api/invoices", tags=["invoices"])


@router.post("", response_model=InvoiceAccepted, status_code=202)
async def create_invoice(
    payload: InvoiceCreate,
    user: User = Depends(get_current_user),
    pipeline: InvoicePipeline = Depends(get_pipeline),
):
    invoice = await pipeline.submit(
        owner_id=user.id,
        client_name=payload.client_name,
        invoice_date=payload.invoice_date,
        line_items=payload.line_items,
    )
    return {
        "message": "Invoice processing initiated. Status will update shortly.",
        "invoice": InvoiceRead.model_validate(invoice),
    }


@router.get("", response_model=list[InvoiceRead])
async def list_invoices(
    user: User = Depends(get_current_user),
    pipeline: InvoicePipeline = Depends(get_pipeline),
):
    return [InvoiceRead.model_validate(inv) for inv in await pipeline.list(user.id)]


@router.get("/{invoice_id}", response_model=InvoiceRead)
async def get_invoice(
    invoice_id: str,
    user: User = Depends(get_current_user),
    pipeline: InvoicePipeline = Depends(get_pipeline),
):
    return InvoiceRead.model_validate(await pipeline.get(user.id, invoice_id))


@router.get("/{invoice_id}/download", response_model=DownloadLink)
async def download_invoice(
    invoice_id: str,
    user: User = Depends(get_current_user),
    pipeline: InvoicePipeline = Depends(get_pipeline),
):
    url = await pipeline.request_download(user.id, invoice_id)
    return DownloadLink(download_url=url, expires_in=pipeline.download_ttl)
