"""Formatting rules shared by the HTML, ESC/POS and PDF receipts."""

from datetime import date, datetime
from typing import List, Optional
from schemas.schemas import Recibo, ClienteRecibo
from services.validators import format_phone, format_cpf

ELLIPSIS = "..."

# Product-name width per output
NAME_BUDGET_HTML = 20
NAME_BUDGET_THERMAL = 20
NAME_BUDGET_PDF = 30

ITEMS_HEADER = "QTD PRODUTO                      VALOR"


def format_brl(value: float) -> str:
    """R$ with comma decimals and no thousands separator: 'R$ 1234,50'."""
    return f"R$ {value or 0:.2f}".replace(".", ",")


def format_date(value: date | datetime) -> str:
    return value.strftime("%d/%m/%Y")


def format_datetime(value: datetime) -> str:
    return value.strftime("%d/%m/%Y %H:%M:%S")


def format_quantity(qty: float) -> str:
    """2.0 -> '2', 1.5 -> '1.5'."""
    return f"{qty:g}"


def truncate_name(name: str, budget: int) -> str:
    """Names longer than budget keep budget-3 chars plus an ellipsis."""
    if len(name) <= budget:
        return name
    return name[:budget - len(ELLIPSIS)] + ELLIPSIS


def document_title(recibo: Recibo, sale_label: str = "PEDIDO") -> str:
    label = "ORÇAMENTO" if recibo.tipo == "quote" else sale_label
    return f"{label} Nº {recibo.numero}"


def reference_time(recibo: Recibo, now: Optional[datetime] = None) -> datetime:
    """Sale date when the document has one, otherwise the render clock."""
    if recibo.data_venda:
        return recibo.data_venda
    return now or datetime.now()


def item_total(item) -> float:
    return item.total if item.total is not None else item.quantidade * item.preco


def customer_lines(cliente: ClienteRecibo) -> List[str]:
    """Name, phone, CPF and postal address lines, skipping empty parts."""
    lines = [cliente.nome]
    if cliente.telefone:
        lines.append(f"Tel: {format_phone(cliente.telefone)}")
    if cliente.cpf:
        lines.append(f"CPF: {format_cpf(cliente.cpf)}")

    if cliente.logradouro:
        street = cliente.logradouro
        if cliente.numero:
            street += f", {cliente.numero}"
        if cliente.complemento:
            street += f" - {cliente.complemento}"
        lines.append(street)

    if cliente.bairro or cliente.cidade:
        city = cliente.bairro or ""
        if cliente.cidade:
            city += f" - {cliente.cidade}" if city else cliente.cidade
        if cliente.uf:
            city += f"/{cliente.uf}"
        if cliente.cep:
            city += f" - CEP: {cliente.cep}"
        lines.append(city)
    return lines


def item_row(item, budget: int) -> str:
    """Fixed-width 'QTD PRODUTO VALOR' row used by the 80mm layouts."""
    qty = format_quantity(item.quantidade).rjust(3)
    name = truncate_name(item.nome, budget).ljust(budget)
    price = format_brl(item_total(item)).rjust(10)
    return f"{qty} {name} {price}"
