from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from io import BytesIO
from typing import Protocol

import qrcode
from qrcode.constants import ERROR_CORRECT_H
from PIL import Image, ImageColor, ImageDraw, ImageFont

RECEIPT_SIZE = (1080, 1400)
RECEIPT_W, RECEIPT_H = RECEIPT_SIZE
RECEIPT_BG = "#FFFFFF"
HEADER_BG = "#1B2A3B"
ACCENT = "#2E8B57"
MUTED = "#6B7280"
INK = "#111827"
PDF_RESOLUTION = 150.0
QR_SIZE = 300
QR_BOX = (RECEIPT_W - 80 - QR_SIZE, RECEIPT_H - 80 - QR_SIZE)

FONT_BOLD_SEARCH_PATHS = (
    "assets/fonts/Montserrat-Bold.ttf",
    "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf",
    "/usr/share/fonts/truetype/liberation/LiberationSans-Bold.ttf",
    "DejaVuSans-Bold.ttf",
    "arialbd.ttf",
)
FONT_REGULAR_SEARCH_PATHS = (
    "assets/fonts/Montserrat-Regular.ttf",
    "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
    "/usr/share/fonts/truetype/liberation/LiberationSans-Regular.ttf",
    "DejaVuSans.ttf",
    "arial.ttf",
)


@dataclass(frozen=True, slots=True)
class ReceiptContext:
    transaction_id: str
    purchased_at: datetime | None
    payer_name: str
    payer_email: str | None
    item_label: str
    amount: Decimal
    currency: str
    payment_method: str
    status: str


@dataclass(frozen=True, slots=True)
class RenderedReceipt:
    pdf: bytes
    png: bytes


class ReceiptRenderer(Protocol):
    def render(self, context: ReceiptContext) -> RenderedReceipt: ...


def _rgb(color: str) -> tuple[int, int, int]:
    red, green, blue, *_ = ImageColor.getrgb(color)
    return (red, green, blue)


def _load_font(size: int, *, bold: bool = False) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
    for path in FONT_BOLD_SEARCH_PATHS if bold else FONT_REGULAR_SEARCH_PATHS:
        try:
            return ImageFont.truetype(path, size=size)
        except OSError:
            continue
    return ImageFont.load_default()


def _truncate(value: str | None, *, fallback: str, limit: int) -> str:
    resolved = (value or fallback).strip() or fallback
    return resolved if len(resolved) <= limit else f"{resolved[: limit - 3].rstrip()}..."


def _format_timestamp(value: datetime | None) -> str:
    resolved = value or datetime.now(timezone.utc)
    return resolved.astimezone(timezone.utc).strftime("%Y-%m-%d %H:%M UTC")


def format_amount(amount: Decimal, currency: str) -> str:
    return f"{currency} {amount.quantize(Decimal('0.01')):,}"


def _receipt_rows(context: ReceiptContext) -> list[tuple[str, str]]:
    return [
        ("Receipt no.", _truncate(context.transaction_id, fallback="-", limit=36)),
        ("Date", _format_timestamp(context.purchased_at)),
        ("Customer", _truncate(context.payer_name, fallback="Customer", limit=36)),
        ("Email", _truncate(context.payer_email, fallback="-", limit=36)),
        ("Item", _truncate(context.item_label, fallback="Document", limit=36)),
        ("Payment method", _truncate(context.payment_method, fallback="unknown", limit=36)),
        ("Status", context.status.upper()),
    ]


def build_receipt_payload(context: ReceiptContext) -> str:
    return json.dumps(
        {
            "transaction_id": context.transaction_id,
            "customer": _truncate(context.payer_name, fallback="Customer", limit=64),
            "customer_email": _truncate(context.payer_email, fallback="-", limit=64),
            "item": _truncate(context.item_label, fallback="Document", limit=120),
            "amount": str(context.amount),
            "currency": context.currency,
            "payment_method": context.payment_method,
            "purchased_at": context.purchased_at.isoformat() if context.purchased_at else None,
        },
        separators=(",", ":"),
        sort_keys=True,
    )


def _draw_qr_code(draw: ImageDraw.ImageDraw, payload: str) -> None:
    qr = qrcode.QRCode(error_correction=ERROR_CORRECT_H, border=2)
    qr.add_data(payload)
    qr.make(fit=True)
    matrix = qr.get_matrix()

    module = max(1, QR_SIZE // len(matrix))
    left, top = QR_BOX
    for row_index, row in enumerate(matrix):
        for col_index, is_dark in enumerate(row):
            if not is_dark:
                continue
            x = left + col_index * module
            y = top + row_index * module
            draw.rectangle([x, y, x + module - 1, y + module - 1], fill=_rgb(INK))


def render_receipt_image(context: ReceiptContext) -> Image.Image:
    image = Image.new("RGB", RECEIPT_SIZE, color=_rgb(RECEIPT_BG))
    draw = ImageDraw.Draw(image)
    draw.rectangle([0, 0, RECEIPT_W, 220], fill=_rgb(HEADER_BG))
    draw.text((80, 70), "DOCMARKET", font=_load_font(64, bold=True), fill=(255, 255, 255))
    draw.text((80, 150), "Payment receipt", font=_load_font(32), fill=(200, 210, 225))

    label_font = _load_font(30)
    value_font = _load_font(30, bold=True)
    y = 300
    for label, value in _receipt_rows(context):
        draw.text((80, y), label, font=label_font, fill=_rgb(MUTED))
        draw.text((440, y), value, font=value_font, fill=_rgb(INK))
        y += 80

    draw.line([(80, y + 20), (RECEIPT_W - 80, y + 20)], fill=_rgb(MUTED), width=2)
    draw.text((80, y + 70), "Total", font=_load_font(44, bold=True), fill=_rgb(INK))
    draw.text(
        (440, y + 70),
        format_amount(context.amount, context.currency),
        font=_load_font(44, bold=True),
        fill=_rgb(ACCENT),
    )
    draw.text(
        (80, RECEIPT_H - 120),
        "Thank you for your purchase.",
        font=_load_font(26),
        fill=_rgb(MUTED),
    )
    _draw_qr_code(draw, build_receipt_payload(context))
    return image


class PillowReceiptRenderer:
    def render(self, context: ReceiptContext) -> RenderedReceipt:
        image = render_receipt_image(context)

        png_buffer = BytesIO()
        image.save(png_buffer, format="PNG", compress_level=1)

        pdf_buffer = BytesIO()
        image.save(pdf_buffer, format="PDF", resolution=PDF_RESOLUTION)
        return RenderedReceipt(pdf=pdf_buffer.getvalue(), png=png_buffer.getvalue())
