# services/line_items.py
from __future__ import annotations
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Iterable, List, Mapping

CENT = Decimal("0.01")
# Invoice.grand_total is DECIMAL(14, 2): at most 12 integer digits
MAX_AMOUNT = Decimal("1e12")


def money(v: Any) -> Decimal:
    """Round to 2 decimals, half-up (what people expect on an invoice)."""
    return Decimal(str(v)).quantize(CENT, rounding=ROUND_HALF_UP)


def fits_column(amount: Decimal) -> bool:
    return abs(amount) < MAX_AMOUNT


def _to_decimal(v: Any) -> Decimal | None:
    if v is None or v == "":
        return None
    try:
        d = Decimal(str(v).strip())
    except (InvalidOperation, ValueError):
        return None
    return d if d.is_finite() else None


def _to_int(v: Any) -> int | None:
    d = _to_decimal(v)
    if d is None or d != d.to_integral_value():
        return None
    return int(d)


@dataclass(frozen=True)
class LineItem:
    description: str
    price: Decimal
    qty: int
    total: Decimal

    @classmethod
    def build(cls, description: str, price: Decimal, qty: int) -> "LineItem":
        return cls(description=description, price=price, qty=qty, total=money(price * qty))

    def to_json(self) -> dict:
        # decimals go to the JSON column as strings so no precision is lost
        return {
            "description": self.description,
            "price": str(self.price),
            "qty": self.qty,
            "total": str(self.total),
        }

    @classmethod
    def from_json(cls, row: Mapping[str, Any]) -> "LineItem":
        return cls(
            description=str(row["description"]),
            price=Decimal(str(row["price"])),
            qty=int(row["qty"]),
            total=Decimal(str(row["total"])),
        )


def normalize_line_items(rows: Iterable[Any]) -> List[LineItem]:
    """
    Keep only usable rows: non-empty description, price > 0, integer qty > 0,
    and a line total that fits the stored amount column.
    Totals are recomputed; anything the client sent as `total` is ignored.
    Accepts mappings or objects with description/price/qty attributes.
    """
    out: List[LineItem] = []
    for row in rows or []:
        get = row.get if isinstance(row, Mapping) else (lambda k, r=row: getattr(r, k, None))
        description = str(get("description") or "").strip()
        price = _to_decimal(get("price"))
        qty = _to_int(get("qty"))
        if not description or price is None or price <= 0 or qty is None or qty <= 0:
            continue
        try:
            item = LineItem.build(description, price, qty)
        except InvalidOperation:
            continue
        if not fits_column(item.total):
            continue
        out.append(item)
    return out


def grand_total(items: Iterable[LineItem]) -> Decimal:
    return money(sum((it.total for it in items), Decimal("0")))
