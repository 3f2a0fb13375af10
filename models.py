from enum import Enum
import uuid

from tortoise import fields, models


# -------- Users --------
class User(models.Model):
    id = fields.UUIDField(pk=True, default=uuid.uuid4)
    name = fields.CharField(max_length=100)
    email = fields.CharField(max_length=255, unique=True, index=True)
    hashed_password = fields.CharField(max_length=128)
    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "users"

    def __str__(self) -> str:
        return f"{self.name} ({self.email})"


# -------- Invoices --------
class InvoiceStatus(str, Enum):
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    def can_transition(self, target: "InvoiceStatus") -> bool:
        """processing -> completed | failed; terminal states never move."""
        return self is InvoiceStatus.PROCESSING and target in (
            InvoiceStatus.COMPLETED,
            InvoiceStatus.FAILED,
        )

    @property
    def is_terminal(self) -> bool:
        return self is not InvoiceStatus.PROCESSING


class Invoice(models.Model):
    id = fields.UUIDField(pk=True, default=uuid.uuid4)
    owner = fields.ForeignKeyField("models.User", related_name="invoices", index=True, on_delete=fields.CASCADE)
    client_name = fields.CharField(max_length=255)
    invoice_date = fields.DateField()
    line_items = fields.JSONField(default=list)  # [{description, price, qty, total}] in display order
    grand_total = fields.DecimalField(max_digits=14, decimal_places=2)
    status = fields.CharEnumField(InvoiceStatus, max_length=16, default=InvoiceStatus.PROCESSING, index=True)
    pdf_key = fields.CharField(max_length=512, null=True)  # set only when status == completed
    created_at = fields.DatetimeField(auto_now_add=True, index=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        table = "invoices"
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"Invoice#{self.id} ({self.status})"
