"""
80mm receipt as an HTML page for the browser's print dialog.

The page prints itself on load and closes one second later; the frontend
only has to open it in a new window.
"""

import html
from datetime import datetime
from typing import Optional
from config import STORE_NAME, STORE_ADDRESS, STORE_PHONE, STORE_PIX
from schemas.schemas import Recibo
from services.receipt_format import (
    NAME_BUDGET_HTML, ITEMS_HEADER, customer_lines, document_title, format_brl,
    format_date, format_datetime, item_row, reference_time,
)

_STYLE = """
      @page { size: 80mm auto; margin: 0; }
      html, body { margin: 0; padding: 0; height: auto;
                   font-family: monospace; font-size: 12px; line-height: 1.2; }
      .receipt { padding: 2mm 2mm 5mm; width: 80mm; box-sizing: border-box; }
      .center { text-align: center; }
      .bold { font-weight: bold; }
      .large { font-size: 16px; }
      .separator { border-top: 1px dashed #000; margin: 2px 0; }
      .right { text-align: right; }
      .row { white-space: pre; }
"""

_AUTO_PRINT = """
    <script>
      window.addEventListener("load", function () {
        window.print();
        setTimeout(function () { window.close(); }, 1000);
      });
    </script>"""


def _div(text: str, cls: str = "") -> str:
    attr = f' class="{cls}"' if cls else ""
    return f"<div{attr}>{html.escape(text)}</div>"


def render_receipt_html(recibo: Recibo, *, auto_print: bool = True,
                        now: Optional[datetime] = None) -> str:
    when = reference_time(recibo, now)
    title = document_title(recibo)

    body = [
        _div(title, "center bold large"),
        _div(format_date(when), "center"),
        _div("CLIENTE:", "bold"),
    ]
    body += [_div(line) for line in customer_lines(recibo.cliente)]

    body += [
        '<div class="separator"></div>',
        _div(ITEMS_HEADER, "bold row"),
        '<div class="separator"></div>',
    ]
    body += [_div(item_row(item, NAME_BUDGET_HTML), "row") for item in recibo.itens]
    body.append('<div class="separator"></div>')

    totals = []
    if recibo.desconto > 0:
        totals.append(_div(f"Subtotal: {format_brl(recibo.subtotal)}"))
        totals.append(_div(f"Desconto: {format_brl(recibo.desconto)}"))
    totals.append(_div(f"TOTAL: {format_brl(recibo.total)}", "bold large"))
    body.append('<div class="right">' + "".join(totals) + "</div>")

    if recibo.forma_pagamento:
        body += [_div("PAGAMENTO:", "bold"), _div(recibo.forma_pagamento)]
    if recibo.tipo == "quote" and recibo.valido_ate:
        body.append(_div(f"Válido até: {format_date(recibo.valido_ate)}"))
    if recibo.observacoes:
        body += [_div("OBSERVAÇÕES:", "bold"), _div(recibo.observacoes)]

    body += [
        '<div class="separator"></div>',
        _div(STORE_NAME, "center bold"),
        _div(STORE_ADDRESS, "center"),
        _div(f"Tel: {STORE_PHONE}", "center"),
        _div(f"PIX: {STORE_PIX}", "center"),
        _div(format_datetime(when), "center"),
    ]

    content = "\n      ".join(body)
    return f"""<!DOCTYPE html>
<html>
  <head>
    <meta charset="utf-8">
    <title>{html.escape(title)}</title>
    <style>{_STYLE}    </style>{_AUTO_PRINT if auto_print else ""}
  </head>
  <body>
    <div class="receipt">
      {content}
    </div>
  </body>
</html>
"""
