"""
PDF receipt generation using PyMuPDF (fitz).

Page is 80mm wide (226.77 pt) for thermal paper; the body flows onto a
new page once the cursor passes _PAGE_BREAK_Y. The result is returned as raw
bytes or as a base64 data URI for the frontend to embed or download.
"""

import base64
import logging
from datetime import datetime
from typing import Optional
import fitz  # PyMuPDF
from config import STORE_NAME, STORE_ADDRESS, STORE_PIX, STORE_SYSTEM_NAME
from schemas.schemas import Recibo
from services.receipt_format import (
    NAME_BUDGET_PDF, customer_lines, document_title, format_brl, format_date,
    format_datetime, format_quantity, item_total, reference_time, truncate_name,
)

logger = logging.getLogger(__name__)

_PAGE_WIDTH = 226.77   # 80mm
_PAGE_HEIGHT = 841.89  # A4 height
_MARGIN = 10
_CONTENT_WIDTH = _PAGE_WIDTH - 2 * _MARGIN
_PAGE_BREAK_Y = 750

_FONT = "helv"
_FONT_BOLD = "hebo"
_BLACK = (0, 0, 0)
_GRAY = (100 / 255, 100 / 255, 100 / 255)


class _Cursor:
    """Top-down writer over a growing fitz document."""

    def __init__(self, doc: fitz.Document):
        self.doc = doc
        self.page = doc.new_page(width=_PAGE_WIDTH, height=_PAGE_HEIGHT)
        self.y = 15.0

    def ensure_room(self):
        if self.y > _PAGE_BREAK_Y:
            self.page = self.doc.new_page(width=_PAGE_WIDTH, height=_PAGE_HEIGHT)
            self.y = 20.0

    def text(self, text: str, size: float = 8, bold: bool = False, x: float = _MARGIN,
             color=_BLACK, advance: float = 10):
        self.page.insert_text((x, self.y), text, fontsize=size,
                              fontname=_FONT_BOLD if bold else _FONT, color=color)
        self.y += advance

    def centered(self, text: str, size: float = 8, bold: bool = False,
                 color=_BLACK, advance: float = 10):
        width = fitz.get_text_length(text, fontname=_FONT_BOLD if bold else _FONT,
                                     fontsize=size)
        self.text(text, size, bold, x=(_PAGE_WIDTH - width) / 2, color=color, advance=advance)

    def separator(self, advance: float = 15):
        self.page.draw_line(fitz.Point(_MARGIN, self.y), fitz.Point(_PAGE_WIDTH - _MARGIN, self.y),
                            color=_BLACK, width=0.5)
        self.y += advance


def _split_long_word(word: str, size: float, width: float) -> list[str]:
    """Break a token wider than the line into character chunks that fit."""
    pieces: list[str] = []
    current = ""
    for ch in word:
        if current and fitz.get_text_length(current + ch, fontname=_FONT, fontsize=size) > width:
            pieces.append(current)
            current = ch
        else:
            current += ch
    pieces.append(current)
    return pieces


def _wrap(text: str, size: float, width: float = _CONTENT_WIDTH) -> list[str]:
    """Greedy word wrap measured with the regular font."""
    lines: list[str] = []
    for paragraph in text.splitlines() or [""]:
        current = ""
        for word in paragraph.split():
            if fitz.get_text_length(word, fontname=_FONT, fontsize=size) > width:
                if current:
                    lines.append(current)
                *full, current = _split_long_word(word, size, width)
                lines.extend(full)
                continue
            candidate = f"{current} {word}".strip()
            if current and fitz.get_text_length(candidate, fontname=_FONT, fontsize=size) > width:
                lines.append(current)
                current = word
            else:
                current = candidate
        lines.append(current)
    return lines


def generate_receipt_pdf(recibo: Recibo, now: Optional[datetime] = None) -> bytes:
    when = reference_time(recibo, now)
    doc = fitz.open()
    try:
        c = _Cursor(doc)

        # Store header
        c.centered(STORE_NAME, size=12, bold=True, advance=15)
        c.centered(STORE_ADDRESS, advance=12)
        c.centered(f"PIX: {STORE_PIX}", advance=20)
        c.separator()

        c.centered(document_title(recibo, sale_label="RECIBO DE VENDA"), size=10, bold=True,
                   advance=15)
        c.centered(f"Data: {format_date(when)}", advance=20)

        c.text("CLIENTE:", bold=True)
        for line in customer_lines(recibo.cliente):
            c.text(line, advance=8)
        c.y += 10
        c.separator()

        c.text("ITENS:", bold=True, advance=12)
        for item in recibo.itens:
            c.ensure_room()
            c.text(truncate_name(item.nome, NAME_BUDGET_PDF))
            c.text(f"{format_quantity(item.quantidade)}x {format_brl(item.preco)} = "
                   f"{format_brl(item_total(item))}", x=_MARGIN + 5, advance=15)
        c.ensure_room()
        c.separator(advance=12)

        c.text(f"Subtotal: {format_brl(recibo.subtotal)}")
        if recibo.desconto > 0:
            c.text(f"Desconto: {format_brl(recibo.desconto)}")
        c.text(f"TOTAL: {format_brl(recibo.total)}", size=10, bold=True, advance=20)

        if recibo.forma_pagamento:
            c.text("PAGAMENTO:", bold=True)
            c.text(recibo.forma_pagamento, advance=15)
        if recibo.tipo == "quote" and recibo.valido_ate:
            c.text(f"Válido até: {format_date(recibo.valido_ate)}", advance=15)
        if recibo.observacoes:
            c.ensure_room()
            c.text("OBSERVAÇÕES:", bold=True)
            for line in _wrap(recibo.observacoes, 8):
                c.ensure_room()
                c.text(line, advance=8)
            c.y += 15

        c.ensure_room()
        c.separator(advance=10)
        c.centered(STORE_SYSTEM_NAME, size=6, color=_GRAY, advance=8)
        c.centered(format_datetime(when), size=6, color=_GRAY)

        pdf_bytes = doc.tobytes()
    finally:
        doc.close()

    logger.info(f"PDF do recibo {recibo.numero}: {len(pdf_bytes)} bytes")
    return pdf_bytes


def generate_receipt_pdf_data_uri(recibo: Recibo, now: Optional[datetime] = None) -> str:
    encoded = base64.b64encode(generate_receipt_pdf(recibo, now)).decode("ascii")
    return f"data:application/pdf;base64,{encoded}"
