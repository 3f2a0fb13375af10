from collections.abc import AsyncGenerator
from datetime import date
from decimal import Decimal

import pytest
from tortoise import Tortoise

from models import User
from services.errors import StorageError
from services.line_items import LineItem
from services.pdf_builder import InvoiceDocument


class FakeGateway:
    """In-memory stand-in for S3Gateway with the same upload/sign contract."""

    def __init__(self, fail_upload: bool = False, fail_sign: bool = False) -> None:
        self.fail_upload = fail_upload
        self.fail_sign = fail_sign
        self.objects: dict[str, tuple[bytes, str]] = {}
        self.signed: list[tuple[str, int]] = []

    def upload_bytes(self, key: str, data: bytes, content_type: str) -> str:
        if self.fail_upload:
            raise StorageError("bucket missing")
        self.objects[key] = (data, content_type)
        return key

    def sign_url(self, key: str, ttl_seconds: int) -> str:
        if self.fail_sign:
            raise StorageError("Could not sign download URL")
        self.signed.append((key, ttl_seconds))
        return f"https://bucket.example.test/{key}?X-Amz-Expires={ttl_seconds}"

    def ping(self) -> bool:
        return True


@pytest.fixture()
def fake_gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture()
def sample_document() -> InvoiceDocument:
    items = [
        LineItem.build("Widget", Decimal("10.00"), 3),
        LineItem.build("Consulting hour", Decimal("75.50"), 2),
    ]
    return InvoiceDocument(
        client_name="Acme",
        invoice_date=date(2024, 1, 15),
        line_items=items,
        grand_total=Decimal("181.00"),
    )


@pytest.fixture()
async def db() -> AsyncGenerator[None, None]:
    await Tortoise.init(db_url="sqlite://:memory:", modules={"models": ["models"]})
    await Tortoise.generate_schemas()
    try:
        yield
    finally:
        await Tortoise.close_connections()


@pytest.fixture()
async def owner(db: None) -> User:
    return await User.create(name="Alice", email="alice@example.com", hashed_password="x")


@pytest.fixture()
async def other_owner(db: None) -> User:
    return await User.create(name="Bob", email="bob@example.com", hashed_password="x")
