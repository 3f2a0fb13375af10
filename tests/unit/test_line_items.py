from decimal import Decimal
from types import SimpleNamespace

from services.line_items import LineItem, fits_column, grand_total, money, normalize_line_items


class TestNormalize:
    def test_recomputes_total_and_ignores_client_total(self) -> None:
        items = normalize_line_items([{"description": "Widget", "price": 10, "qty": 3, "total": 999}])

        assert items == [LineItem("Widget", Decimal("10.00"), 3, Decimal("30.00"))]

    def test_drops_unusable_rows(self) -> None:
        rows = [
            {"description": "", "price": 5, "qty": 1},
            {"description": "   ", "price": 5, "qty": 1},
            {"description": "free", "price": 0, "qty": 1},
            {"description": "negative", "price": -1, "qty": 1},
            {"description": "none", "price": 5, "qty": 0},
            {"description": "fraction", "price": 5, "qty": "1.5"},
            {"description": "garbage", "price": "abc", "qty": 1},
            {"description": "missing qty", "price": 5, "qty": None},
            {"description": "keep", "price": "2.5", "qty": "4"},
        ]

        items = normalize_line_items(rows)

        assert [it.description for it in items] == ["keep"]
        assert items[0].total == Decimal("10.00")

    def test_keeps_order(self) -> None:
        rows = [{"description": d, "price": 1, "qty": 1} for d in ("c", "a", "b")]
        assert [it.description for it in normalize_line_items(rows)] == ["c", "a", "b"]

    def test_accepts_objects(self) -> None:
        row = SimpleNamespace(description="Widget", price=Decimal("1.10"), qty=Decimal("3"))
        assert normalize_line_items([row])[0].total == Decimal("3.30")

    def test_empty_input(self) -> None:
        assert normalize_line_items([]) == []
        assert normalize_line_items(None) == []


    def test_amount_too_large_for_decimal_context_is_dropped(self) -> None:
        rows = [
            {"description": "Huge", "price": "1e30", "qty": 1},
            {"description": "Keep", "price": "1", "qty": 1},
        ]
        assert [it.description for it in normalize_line_items(rows)] == ["Keep"]

    def test_line_total_must_fit_amount_column(self) -> None:
        rows = [
            {"description": "Too big", "price": "1e12", "qty": 1},
            {"description": "Also too big", "price": "500000000000", "qty": 2},
            {"description": "Largest", "price": "999999999999.99", "qty": 1},
        ]
        items = normalize_line_items(rows)

        assert [it.description for it in items] == ["Largest"]
        assert fits_column(items[0].total)


class TestMoney:
    def test_rounds_half_up(self) -> None:
        assert money("0.125") == Decimal("0.13")
        assert money(Decimal("2.675")) == Decimal("2.68")

    def test_item_total_rounded_to_cents(self) -> None:
        item = LineItem.build("x", Decimal("0.333"), 3)
        assert item.price == Decimal("0.333")
        assert item.total == Decimal("1.00")

    def test_grand_total_sums_item_totals(self) -> None:
        items = normalize_line_items([
            {"description": "a", "price": "19.99", "qty": 3},
            {"description": "b", "price": "0.01", "qty": 1},
        ])
        assert grand_total(items) == Decimal("59.98")

    def test_grand_total_of_nothing(self) -> None:
        assert grand_total([]) == Decimal("0.00")


def test_json_round_trip_keeps_precision() -> None:
    item = LineItem.build("Widget", Decimal("10.10"), 3)
    stored = item.to_json()

    assert stored == {"description": "Widget", "price": "10.10", "qty": 3, "total": "30.30"}
    assert LineItem.from_json(stored) == item
