# services/invoice_pipeline.py
from __future__ import annotations
import asyncio
import logging
from datetime import date
from typing import Any, Callable, Iterable, List, Optional
import uuid

from models import Invoice, InvoiceStatus
from services.background import BackgroundRunner
from services.errors import (
    Forbidden, InvalidTransition, NotFound, NotReady, RateLimitExceeded, ValidationError,
)
from services.invoice_store import InvoiceStore
from services.line_items import LineItem, fits_column, grand_total, normalize_line_items
from services.pdf_builder import InvoiceDocument, render_invoice_pdf
from services.rate_limiter import RateLimiter

logger = logging.getLogger("uvicorn")

PDF_CONTENT_TYPE = "application/pdf"

Renderer = Callable[[InvoiceDocument], bytes]


def pdf_key_for(invoice_id: uuid.UUID, prefix: str = "invoices") -> str:
    return f"{prefix}/{invoice_id}.pdf"


def document_for(invoice: Invoice) -> InvoiceDocument:
    items = [LineItem.from_json(row) for row in (invoice.line_items or [])]
    return InvoiceDocument(
        client_name=invoice.client_name,
        invoice_date=invoice.invoice_date,
        line_items=items,
        grand_total=invoice.grand_total,
    )


class InvoicePipeline:
    """
    submit -> (detached) render -> upload -> finalize.

    The request path only validates, rate-limits and persists a `processing`
    row; everything after that runs on the BackgroundRunner and reports its
    outcome through the invoice status. No retries.
    """

    def __init__(
        self,
        *,
        store: InvoiceStore,
        rate_limiter: RateLimiter,
        gateway,
        runner: BackgroundRunner,
        renderer: Optional[Renderer] = None,
        download_ttl: int = 300,
        key_prefix: str = "invoices",
    ):
        self.store = store
        self.rate_limiter = rate_limiter
        self.gateway = gateway
        self.runner = runner
        self.renderer = renderer or render_invoice_pdf
        self.download_ttl = download_ttl
        self.key_prefix = key_prefix

    # ---------- request path ----------
    async def submit(
        self,
        owner_id: uuid.UUID,
        client_name: str,
        invoice_date: date,
        line_items: Iterable[Any],
    ) -> Invoice:
        client_name = (client_name or "").strip()
        if not client_name:
            raise ValidationError("Client name is required.")
        items = normalize_line_items(line_items)
        if not items:
            raise ValidationError("Please add at least one valid line item.")
        total = grand_total(items)
        if not fits_column(total):
            raise ValidationError("Invoice total is too large.")

        stamp = self.rate_limiter.acquire(owner_id)
        if stamp is None:
            logger.warning(f"[invoices] rate limit exceeded for user {owner_id}")
            raise RateLimitExceeded()

        try:
            invoice = await self.store.create(
                owner_id=owner_id,
                client_name=client_name,
                invoice_date=invoice_date,
                line_items=items,
                grand_total=total,
            )
        except Exception:
            # the request was not accepted, so it should not count against the user
            self.rate_limiter.release(owner_id, stamp)
            raise

        logger.info(f"[invoices] accepted {invoice.id} for user {owner_id} ({len(items)} lines)")
        self.runner.spawn(invoice.id, self.run_generation(invoice.id))
        return invoice

    async def list(self, owner_id: uuid.UUID) -> List[Invoice]:
        return await self.store.list_by_owner(owner_id)

    async def get(self, owner_id: uuid.UUID, invoice_id) -> Invoice:
        invoice = await self.store.get(invoice_id)
        if invoice is None:
            raise NotFound()
        if invoice.owner_id != owner_id:
            raise Forbidden()
        return invoice

    async def request_download(self, owner_id: uuid.UUID, invoice_id) -> str:
        """Fresh signed URL per call; nothing is persisted."""
        invoice = await self.get(owner_id, invoice_id)
        if invoice.status != InvoiceStatus.COMPLETED or not invoice.pdf_key:
            raise NotReady()
        return await asyncio.to_thread(self.gateway.sign_url, invoice.pdf_key, self.download_ttl)

    # ---------- background continuation ----------
    async def run_generation(self, invoice_id: uuid.UUID) -> InvoiceStatus:
        invoice = await self.store.get(invoice_id)
        if invoice is None:
            raise NotFound(f"Invoice {invoice_id} disappeared before generation")
        if InvoiceStatus(invoice.status).is_terminal:
            raise InvalidTransition(f"Invoice {invoice_id} is already {InvoiceStatus(invoice.status).value}")

        key = pdf_key_for(invoice.id, self.key_prefix)
        try:
            pdf_bytes = await asyncio.to_thread(self.renderer, document_for(invoice))
            await asyncio.to_thread(self.gateway.upload_bytes, key, pdf_bytes, PDF_CONTENT_TYPE)
        except Exception as e:
            logger.error(f"[invoices] generation failed for {invoice_id}: {e}", exc_info=e)
            await self.store.finalize(invoice.id, InvoiceStatus.FAILED)
            return InvoiceStatus.FAILED

        await self.store.finalize(invoice.id, InvoiceStatus.COMPLETED, pdf_key=key)
        logger.info(f"[invoices] {invoice_id} completed -> {key} ({len(pdf_bytes)} bytes)")
        return InvoiceStatus.COMPLETED
