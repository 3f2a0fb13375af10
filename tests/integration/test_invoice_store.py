from datetime import date
from decimal import Decimal

import pytest

from models import Invoice, InvoiceStatus, User
from services.errors import InvalidTransition
from services.invoice_store import InvoiceStore
from services.line_items import LineItem


async def _create(store: InvoiceStore, owner: User, client: str = "Acme") -> Invoice:
    items = [LineItem.build("Widget", Decimal("10.00"), 3)]
    return await store.create(
        owner_id=owner.id,
        client_name=client,
        invoice_date=date(2024, 1, 15),
        line_items=items,
        grand_total=Decimal("30.00"),
    )


class TestCreateAndRead:
    async def test_create_starts_processing(self, owner: User) -> None:
        store = InvoiceStore()

        inv = await _create(store, owner)

        fresh = await store.get(inv.id)
        assert fresh.status == InvoiceStatus.PROCESSING
        assert fresh.pdf_key is None
        assert fresh.grand_total == Decimal("30.00")
        assert fresh.line_items == [{"description": "Widget", "price": "10.00", "qty": 3, "total": "30.00"}]
        assert fresh.owner_id == owner.id

    async def test_get_unknown_or_malformed(self, owner: User) -> None:
        store = InvoiceStore()
        assert await store.get("not-a-uuid") is None
        assert await store.get("3f2b9c1e-0000-4000-8000-000000000000") is None

    async def test_list_newest_first_and_owner_scoped(self, owner: User, other_owner: User) -> None:
        store = InvoiceStore()
        first = await _create(store, owner, "First")
        await _create(store, other_owner, "Not mine")
        second = await _create(store, owner, "Second")

        rows = await store.list_by_owner(owner.id)

        assert [r.id for r in rows] == [second.id, first.id]


class TestFinalize:
    async def test_complete_sets_key(self, owner: User) -> None:
        store = InvoiceStore()
        inv = await _create(store, owner)

        await store.finalize(inv.id, InvoiceStatus.COMPLETED, pdf_key=f"invoices/{inv.id}.pdf")

        fresh = await store.get(inv.id)
        assert fresh.status == InvoiceStatus.COMPLETED
        assert fresh.pdf_key == f"invoices/{inv.id}.pdf"

    async def test_failed_clears_key(self, owner: User) -> None:
        store = InvoiceStore()
        inv = await _create(store, owner)

        await store.finalize(inv.id, InvoiceStatus.FAILED, pdf_key="ignored")

        fresh = await store.get(inv.id)
        assert fresh.status == InvoiceStatus.FAILED
        assert fresh.pdf_key is None

    async def test_second_finalize_rejected_and_state_kept(self, owner: User) -> None:
        store = InvoiceStore()
        inv = await _create(store, owner)
        await store.finalize(inv.id, InvoiceStatus.FAILED)

        with pytest.raises(InvalidTransition):
            await store.finalize(inv.id, InvoiceStatus.COMPLETED, pdf_key="invoices/x.pdf")

        fresh = await store.get(inv.id)
        assert fresh.status == InvoiceStatus.FAILED
        assert fresh.pdf_key is None

    async def test_completed_without_key_rejected(self, owner: User) -> None:
        store = InvoiceStore()
        inv = await _create(store, owner)

        with pytest.raises(InvalidTransition):
            await store.finalize(inv.id, InvoiceStatus.COMPLETED)

        assert (await store.get(inv.id)).status == InvoiceStatus.PROCESSING

    async def test_back_to_processing_rejected(self, owner: User) -> None:
        store = InvoiceStore()
        inv = await _create(store, owner)

        with pytest.raises(InvalidTransition):
            await store.finalize(inv.id, InvoiceStatus.PROCESSING)
