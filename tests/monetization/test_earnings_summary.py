from __future__ import annotations

from decimal import Decimal

from docmarket.monetization.earnings import build_earnings_summary


def test_earnings_summary_combines_free_and_paid_sales() -> None:
    summary = build_earnings_summary(
        free_downloads=3,
        paid_earnings=Decimal("500"),
        withdrawn_total=Decimal("100"),
        free_download_rate=Decimal("1"),
    )

    assert summary.free_earnings == Decimal("3")
    assert summary.total_earnings == Decimal("503")
    assert summary.withdrawn_total == Decimal("100")
    assert summary.available_balance == Decimal("403")


def test_earnings_summary_uses_configured_rate() -> None:
    summary = build_earnings_summary(
        free_downloads=10,
        paid_earnings=Decimal("0"),
        withdrawn_total=Decimal("0"),
        free_download_rate=Decimal("2.5"),
    )

    assert summary.free_earnings == Decimal("25.0")
    assert summary.available_balance == Decimal("25.0")


def test_earnings_summary_as_dict_serializes_amounts() -> None:
    summary = build_earnings_summary(
        free_downloads=1,
        paid_earnings=Decimal("200.00"),
        withdrawn_total=Decimal("0"),
        free_download_rate=Decimal("1"),
    )

    assert summary.as_dict() == {
        "free_downloads": 1,
        "free_earnings": "1",
        "paid_earnings": "200.00",
        "total_earnings": "201.00",
        "withdrawn_total": "0",
        "available_balance": "201.00",
    }
