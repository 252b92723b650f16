"""
ESC/POS receipts for serial thermal printers.

build_escpos_commands() is pure and returns the whole byte stream; the
printing side opens the port with pyserial, writes the stream and always
closes the port, also when a write fails halfway.
"""

import enum
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional
import serial
from config import (
    STORE_NAME, STORE_ADDRESS, STORE_PHONE, STORE_PIX,
    THERMAL_PRINTER_PORT, THERMAL_PRINTER_BAUDRATE, THERMAL_PRINTER_TIMEOUT,
)
from schemas.schemas import Recibo
from services.receipt_format import (
    NAME_BUDGET_THERMAL, ITEMS_HEADER, customer_lines, document_title, format_brl,
    format_date, format_datetime, item_row, reference_time,
)

logger = logging.getLogger(__name__)

ESC = b"\x1b"
GS = b"\x1d"

INITIALIZE = ESC + b"@"
ALIGN_LEFT = ESC + b"a\x00"
ALIGN_CENTER = ESC + b"a\x01"
ALIGN_RIGHT = ESC + b"a\x02"
BOLD_ON = ESC + b"E\x01"
BOLD_OFF = ESC + b"E\x00"
FONT_NORMAL = ESC + b"!\x00"
FONT_LARGE = ESC + b"!\x10"
CUT_PAPER = GS + b"V\x00"

LINE_WIDTH = 48
SEPARATOR = "-" * LINE_WIDTH + "\n"
ENCODING = "utf-8"


class PrintStatus(str, enum.Enum):
    impresso = "impresso"
    indisponivel = "indisponivel"
    falha = "falha"


@dataclass
class PrintResult:
    status: PrintStatus
    mensagem: str

    @property
    def ok(self) -> bool:
        return self.status == PrintStatus.impresso


class _Stream:
    """Accumulates commands and text in order."""

    def __init__(self):
        self._chunks: list[bytes] = []

    def cmd(self, *commands: bytes) -> "_Stream":
        self._chunks.extend(commands)
        return self

    def text(self, value: str) -> "_Stream":
        self._chunks.append(value.encode(ENCODING))
        return self

    def line(self, value: str = "") -> "_Stream":
        return self.text(value + "\n")

    def getvalue(self) -> bytes:
        return b"".join(self._chunks)


def build_escpos_commands(recibo: Recibo, now: Optional[datetime] = None) -> bytes:
    when = reference_time(recibo, now)
    out = _Stream()

    out.cmd(INITIALIZE)

    # Header
    out.cmd(ALIGN_CENTER, BOLD_ON, FONT_LARGE).line(document_title(recibo))
    out.cmd(BOLD_OFF, FONT_NORMAL).line(format_date(when))

    # Customer
    out.cmd(ALIGN_LEFT, BOLD_ON).line("CLIENTE:").cmd(BOLD_OFF)
    for line in customer_lines(recibo.cliente):
        out.line(line)

    # Items
    out.text(SEPARATOR)
    out.cmd(BOLD_ON).line(ITEMS_HEADER).cmd(BOLD_OFF)
    out.text(SEPARATOR)
    for item in recibo.itens:
        out.line(item_row(item, NAME_BUDGET_THERMAL))
    out.text(SEPARATOR)

    # Totals
    out.cmd(ALIGN_RIGHT)
    if recibo.desconto > 0:
        out.line(f"Subtotal: {format_brl(recibo.subtotal)}")
        out.line(f"Desconto: {format_brl(recibo.desconto)}")
    out.cmd(BOLD_ON, FONT_LARGE).line(f"TOTAL: {format_brl(recibo.total)}")
    out.cmd(BOLD_OFF, FONT_NORMAL)

    if recibo.forma_pagamento:
        out.cmd(ALIGN_LEFT, BOLD_ON).line("PAGAMENTO:").cmd(BOLD_OFF)
        out.line(recibo.forma_pagamento)
    if recibo.tipo == "quote" and recibo.valido_ate:
        out.line(f"Válido até: {format_date(recibo.valido_ate)}")
    if recibo.observacoes:
        out.cmd(BOLD_ON).line("OBSERVAÇÕES:").cmd(BOLD_OFF)
        out.line(recibo.observacoes)

    # Footer
    out.text(SEPARATOR)
    out.cmd(ALIGN_CENTER, BOLD_ON).line(STORE_NAME).cmd(BOLD_OFF)
    out.line(STORE_ADDRESS)
    out.line(f"Tel: {STORE_PHONE}")
    out.line(f"PIX: {STORE_PIX}")
    # cut right after the timestamp, no trailing newline
    out.text(format_datetime(when))
    out.cmd(CUT_PAPER)

    return out.getvalue()


def print_thermal_receipt(recibo: Recibo, port: Optional[str] = None,
                          baudrate: int = THERMAL_PRINTER_BAUDRATE) -> PrintResult:
    """Send the receipt to the serial printer at `port` (or THERMAL_PRINTER_PORT)."""
    port = port or THERMAL_PRINTER_PORT
    if not port:
        logger.warning("Impressão térmica solicitada sem porta serial configurada")
        return PrintResult(PrintStatus.indisponivel, "Nenhuma impressora térmica configurada")

    payload = build_escpos_commands(recibo)

    try:
        conn = serial.Serial(port, baudrate=baudrate, timeout=THERMAL_PRINTER_TIMEOUT,
                             write_timeout=THERMAL_PRINTER_TIMEOUT)
    except (serial.SerialException, ValueError) as e:
        logger.warning(f"Porta serial {port} indisponível: {e}")
        return PrintResult(PrintStatus.indisponivel,
                           f"Impressora térmica indisponível em {port}")

    try:
        with conn:
            conn.write(payload)
            conn.flush()
    except serial.SerialException as e:
        logger.error(f"Erro na impressão térmica ({port}): {e}")
        return PrintResult(PrintStatus.falha, "Erro na impressão térmica")

    logger.info(f"Recibo {recibo.numero} enviado para {port} ({len(payload)} bytes)")
    return PrintResult(PrintStatus.impresso, "Recibo enviado para a impressora")
