import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Annotated, Any, List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, PlainSerializer, field_validator
from pydantic.alias_generators import to_camel

# decimals are stored exactly, but the web client expects plain JSON numbers
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


# =========================
# Auth
# =========================
class UserCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=1)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class UserRead(CamelModel):
    id: uuid.UUID
    name: str
    email: EmailStr
    created_at: datetime


class RegisterResponse(BaseModel):
    message: str
    user: UserRead


class LoginResponse(BaseModel):
    token: str
    message: str
    user: UserRead


# =========================
# Invoices
# =========================
class LineItemIn(CamelModel):
    # lenient on purpose: unusable rows are dropped by the pipeline, not rejected here
    description: Optional[str] = None
    price: Optional[Decimal] = None
    qty: Optional[Decimal] = None
    total: Optional[Decimal] = None  # ignored, recomputed server side


class InvoiceCreate(CamelModel):
    client_name: Optional[str] = None
    invoice_date: date
    line_items: List[LineItemIn] = Field(default_factory=list)
    grand_total: Optional[Decimal] = None  # ignored, recomputed server side


class LineItemRead(CamelModel):
    description: str
    price: Money
    qty: int
    total: Money


class InvoiceRead(CamelModel):
    id: uuid.UUID
    client_name: str
    invoice_date: date
    line_items: List[LineItemRead]
    grand_total: Money
    status: str
    pdf_key: Optional[str] = None
    created_at: datetime

    @field_validator("status", mode="before")
    @classmethod
    def _status_value(cls, v: Any) -> Any:
        return getattr(v, "value", v)


class InvoiceAccepted(BaseModel):
    message: str
    invoice: InvoiceRead


class DownloadLink(CamelModel):
    download_url: str
    expires_in: int
