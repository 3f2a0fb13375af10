# services/invoice_store.py
from __future__ import annotations
from datetime import date
from decimal import Decimal
from typing import List, Optional
import uuid

from tortoise import timezone

from models import Invoice, InvoiceStatus
from services.errors import InvalidTransition
from services.line_items import LineItem


def _as_uuid(v) -> Optional[uuid.UUID]:
    if isinstance(v, uuid.UUID):
        return v
    try:
        return uuid.UUID(str(v))
    except (TypeError, ValueError):
        return None


class InvoiceStore:
    """Persistence for invoices. `finalize` is the only writer of a terminal status."""

    async def create(
        self,
        *,
        owner_id: uuid.UUID,
        client_name: str,
        invoice_date: date,
        line_items: List[LineItem],
        grand_total: Decimal,
    ) -> Invoice:
        return await Invoice.create(
            owner_id=owner_id,
            client_name=client_name,
            invoice_date=invoice_date,
            line_items=[it.to_json() for it in line_items],
            grand_total=grand_total,
            status=InvoiceStatus.PROCESSING,
            pdf_key=None,
        )

    async def get(self, invoice_id) -> Optional[Invoice]:
        pk = _as_uuid(invoice_id)
        if pk is None:
            return None
        return await Invoice.get_or_none(id=pk)

    async def list_by_owner(self, owner_id: uuid.UUID) -> List[Invoice]:
        return await Invoice.filter(owner_id=owner_id).order_by("-created_at", "-id")

    async def finalize(
        self,
        invoice_id: uuid.UUID,
        status: InvoiceStatus,
        *,
        pdf_key: Optional[str] = None,
    ) -> None:
        """
        Move a processing invoice to its terminal status.
        The update is conditional on status=processing, so a second finalize
        (or any other stray writer) cannot overwrite a terminal state.
        """
        if not InvoiceStatus.PROCESSING.can_transition(status):
            raise InvalidTransition(f"Cannot finalize invoice {invoice_id} as {status.value}")
        if status is InvoiceStatus.COMPLETED and not pdf_key:
            raise InvalidTransition(f"Completed invoice {invoice_id} needs a pdf key")
        if status is InvoiceStatus.FAILED:
            pdf_key = None

        updated = await Invoice.filter(id=invoice_id, status=InvoiceStatus.PROCESSING).update(
            status=status,
            pdf_key=pdf_key,
            updated_at=timezone.now(),
        )
        if not updated:
            raise InvalidTransition(f"Invoice {invoice_id} is not processing (or does not exist)")
