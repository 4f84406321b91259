from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
import json
from io import BytesIO

from PIL import Image

from docmarket.services.receipts_render import (
    QR_BOX,
    QR_SIZE,
    RECEIPT_SIZE,
    PillowReceiptRenderer,
    ReceiptContext,
    build_receipt_payload,
    format_amount,
)


def _context(**overrides: object) -> ReceiptContext:
    base: dict[str, object] = {
        "transaction_id": "tx-receipt-1",
        "purchased_at": datetime(2026, 2, 14, 9, 30, tzinfo=timezone.utc),
        "payer_name": "ada",
        "payer_email": "ada@example.com",
        "item_label": "Thermodynamics lecture notes",
        "amount": Decimal("1300.00"),
        "currency": "NGN",
        "payment_method": "card",
        "status": "completed",
    }
    base.update(overrides)
    return ReceiptContext(**base)  # type: ignore[arg-type]


def test_format_amount_groups_thousands() -> None:
    assert format_amount(Decimal("1500"), "NGN") == "NGN 1,500.00"
    assert format_amount(Decimal("49.5"), "USD") == "USD 49.50"


def test_pillow_renderer_produces_png_and_pdf() -> None:
    rendered = PillowReceiptRenderer().render(_context())

    assert rendered.pdf.startswith(b"%PDF")
    with Image.open(BytesIO(rendered.png)) as image:
        assert image.format == "PNG"
        assert image.size == RECEIPT_SIZE


def test_pillow_renderer_tolerates_missing_optional_fields() -> None:
    rendered = PillowReceiptRenderer().render(
        _context(purchased_at=None, payer_email=None, item_label="x" * 200)
    )

    assert rendered.png
    assert rendered.pdf.startswith(b"%PDF")


def test_receipt_payload_carries_purchase_details() -> None:
    payload = json.loads(build_receipt_payload(_context(item_label="y" * 500)))

    assert payload["transaction_id"] == "tx-receipt-1"
    assert payload["amount"] == "1300.00"
    assert payload["purchased_at"] == "2026-02-14T09:30:00+00:00"
    assert len(payload["item"]) == 120


def test_receipt_image_carries_qr_block() -> None:
    rendered = PillowReceiptRenderer().render(_context())

    left, top = QR_BOX
    with Image.open(BytesIO(rendered.png)) as image:
        darkest, _ = image.convert("L").crop((left, top, left + QR_SIZE, top + QR_SIZE)).getextrema()
    assert darkest < 64
