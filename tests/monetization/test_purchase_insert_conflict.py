from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from decimal import Decimal
from types import SimpleNamespace

import pytest
from sqlalchemy.exc import IntegrityError

from docmarket.monetization.errors import ConflictError, DuplicatePurchaseError
from docmarket.monetization.purchases.service import record
from docmarket.monetization.purchases.types import PdfPurchase

NOW_UTC = datetime(2026, 5, 4, 12, 0, tzinfo=timezone.utc)


class _SavepointSession:
    @asynccontextmanager
    async def begin_nested(self):
        yield self


async def _none(*_args: object, **_kwargs: object) -> None:
    return None


async def _raise_unique_violation(*_args: object, **_kwargs: object) -> None:
    raise IntegrityError("INSERT INTO purchases", {}, Exception("uq violation"))


@pytest.fixture(autouse=True)
def _stub_lookups(monkeypatch: pytest.MonkeyPatch) -> None:
    async def _get_payer(*_args: object, **_kwargs: object) -> SimpleNamespace:
        return SimpleNamespace(id=7, upload_fee_paid=False)

    async def _get_document(*_args: object, **_kwargs: object) -> SimpleNamespace:
        return SimpleNamespace(id=11, is_paid=True)

    monkeypatch.setattr(
        record,
        "get_settings",
        lambda: SimpleNamespace(default_currency="NGN", upload_fee_amount=Decimal("500")),
    )
    monkeypatch.setattr(record.UsersRepo, "get_by_id_for_update", _get_payer)
    monkeypatch.setattr(record.DocumentsRepo, "get_active_by_id", _get_document)
    monkeypatch.setattr(record.PurchasesRepo, "get_by_transaction_id_for_update", _none)
    monkeypatch.setattr(record.PurchasesRepo, "get_completed_pdf_purchase", _none)
    monkeypatch.setattr(record.PurchasesRepo, "create", _raise_unique_violation)


async def _record_pdf_purchase() -> object:
    return await record.record_purchase(
        _SavepointSession(),  # type: ignore[arg-type]
        user_id=7,
        target=PdfPurchase(pdf_id=11),
        amount=Decimal("250"),
        payment_method="card",
        transaction_id="tx-race",
        status="completed",
        now_utc=NOW_UTC,
    )


async def test_insert_conflict_without_winner_raises_duplicate_purchase(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(record.PurchasesRepo, "get_by_transaction_id", _none)

    with pytest.raises(DuplicatePurchaseError) as exc_info:
        await _record_pdf_purchase()

    assert isinstance(exc_info.value, ConflictError)
    assert isinstance(exc_info.value.__cause__, IntegrityError)


async def test_insert_conflict_returns_winning_row_as_replay(monkeypatch: pytest.MonkeyPatch) -> None:
    winner = SimpleNamespace(
        id=41,
        user_id=7,
        transaction_id="tx-race",
        transaction_type="pdf_purchase",
        pdf_id=11,
        amount=Decimal("250"),
        status="completed",
    )

    async def _get_winner(*_args: object, **_kwargs: object) -> SimpleNamespace:
        return winner

    monkeypatch.setattr(record.PurchasesRepo, "get_by_transaction_id", _get_winner)

    result = await _record_pdf_purchase()

    assert result.purchase_id == 41
    assert result.idempotent_replay is True
