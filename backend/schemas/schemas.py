from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from typing import Optional, List, Literal
from datetime import date, datetime
from models.models import TipoOperacao, SituacaoNFe


# ── NF-e (parse boundary) ─────────────────────────────────────────────────────

class Endereco(BaseModel):
    logradouro: Optional[str] = None
    numero: Optional[str] = None
    complemento: Optional[str] = None
    bairro: Optional[str] = None
    municipio: Optional[str] = None
    uf: Optional[str] = None
    cep: Optional[str] = None


class Participante(BaseModel):
    """Issuer or recipient block of an NF-e."""
    cpf_cnpj: Optional[str] = None
    nome: str = ""
    fantasia: Optional[str] = None
    ie: Optional[str] = None
    endereco: Endereco = Field(default_factory=Endereco)


class Totais(BaseModel):
    valor_total: float = 0.0
    valor_produtos: float = 0.0
    valor_icms: float = 0.0
    valor_ipi: float = 0.0
    valor_pis: float = 0.0
    valor_cofins: float = 0.0
    valor_frete: float = 0.0
    valor_desconto: float = 0.0


class ImpostosItem(BaseModel):
    icms: float = 0.0
    ipi: float = 0.0
    pis: float = 0.0
    cofins: float = 0.0


class ItemNFe(BaseModel):
    numero_item: int = Field(ge=1)
    codigo_produto: str = ""
    ean: Optional[str] = None
    descricao: str = ""
    ncm: Optional[str] = None
    cfop: Optional[str] = None
    unidade: str = ""
    quantidade: float = 0.0
    valor_unitario: float = 0.0
    valor_total: float = 0.0
    impostos: ImpostosItem = Field(default_factory=ImpostosItem)


class NFeParsed(BaseModel):
    chave: str = Field(pattern=r"^\d{44}$")
    numero: str = ""
    serie: str = ""
    natureza_operacao: str = ""
    data_emissao: Optional[datetime] = None
    data_saida: Optional[datetime] = None
    tipo_operacao: TipoOperacao = TipoOperacao.saida
    emitente: Participante
    destinatario: Participante
    totais: Totais = Field(default_factory=Totais)
    itens: List[ItemNFe] = []
    protocolo: Optional[str] = None
    codigo_status: Optional[str] = None
    motivo: Optional[str] = None
    situacao: SituacaoNFe = SituacaoNFe.pendente

    @field_validator("data_emissao", "data_saida", mode="before")
    @classmethod
    def _blank_date(cls, v):
        return v or None


class XmlImportRequest(BaseModel):
    xml: str


# ── NF-e (stored) ─────────────────────────────────────────────────────────────

class ItemNotaOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    numero_item: int
    codigo_produto: Optional[str] = None
    ean: Optional[str] = None
    descricao: Optional[str] = None
    ncm: Optional[str] = None
    cfop: Optional[str] = None
    unidade: Optional[str] = None
    quantidade: Optional[float] = None
    valor_unitario: Optional[float] = None
    valor_total: Optional[float] = None
    valor_icms: Optional[float] = None
    valor_ipi: Optional[float] = None
    valor_pis: Optional[float] = None
    valor_cofins: Optional[float] = None


class NotaFiscalOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    chave_acesso: str
    numero: Optional[str] = None
    serie: Optional[str] = None
    natureza_operacao: Optional[str] = None
    data_emissao: Optional[datetime] = None
    data_saida: Optional[datetime] = None
    tipo_operacao: TipoOperacao
    emitente_cnpj: Optional[str] = None
    emitente_razao_social: Optional[str] = None
    emitente_fantasia: Optional[str] = None
    emitente_ie: Optional[str] = None
    emitente_endereco: Optional[dict] = None
    destinatario_cpf_cnpj: Optional[str] = None
    destinatario_nome: Optional[str] = None
    destinatario_ie: Optional[str] = None
    destinatario_endereco: Optional[dict] = None
    valor_total: Optional[float] = None
    valor_produtos: Optional[float] = None
    valor_icms: Optional[float] = None
    valor_ipi: Optional[float] = None
    valor_pis: Optional[float] = None
    valor_cofins: Optional[float] = None
    valor_frete: Optional[float] = None
    valor_desconto: Optional[float] = None
    situacao: SituacaoNFe
    protocolo: Optional[str] = None
    codigo_status: Optional[str] = None
    data_importacao: Optional[datetime] = None
    itens: List[ItemNotaOut] = []


class FiscalStats(BaseModel):
    total_notas: int
    valor_total: float
    entradas: int
    saidas: int


# ── Receipts ──────────────────────────────────────────────────────────────────

class ClienteRecibo(BaseModel):
    model_config = ConfigDict(frozen=True)

    nome: str
    telefone: Optional[str] = None
    email: Optional[str] = None
    cpf: Optional[str] = None
    cep: Optional[str] = None
    logradouro: Optional[str] = None
    numero: Optional[str] = None
    complemento: Optional[str] = None
    bairro: Optional[str] = None
    cidade: Optional[str] = None
    uf: Optional[str] = None


class ItemRecibo(BaseModel):
    model_config = ConfigDict(frozen=True)

    nome: str
    quantidade: float
    preco: float
    total: Optional[float] = None

    @model_validator(mode="before")
    @classmethod
    def _line_total(cls, data):
        if isinstance(data, dict) and data.get("total") is None:
            try:
                data = {**data, "total": round(float(data["quantidade"]) * float(data["preco"]), 2)}
            except (KeyError, TypeError, ValueError):
                pass  # left to field validation
        return data


class Recibo(BaseModel):
    """Quote or sale, as handed to the receipt renderers."""
    model_config = ConfigDict(frozen=True)

    tipo: Literal["quote", "sale"]
    numero: str
    data_venda: Optional[datetime] = None
    cliente: ClienteRecibo
    itens: List[ItemRecibo] = []
    subtotal: float = 0.0
    desconto: float = 0.0
    total: float = 0.0
    forma_pagamento: Optional[str] = None
    valido_ate: Optional[date] = None
    observacoes: Optional[str] = None

    @field_validator("data_venda", mode="before")
    @classmethod
    def _date_only(cls, v):
        """Accept plain 'YYYY-MM-DD' sale dates as midnight."""
        if not v:
            return None
        if isinstance(v, datetime):
            return v
        if isinstance(v, date):
            return datetime(v.year, v.month, v.day)
        if isinstance(v, str) and len(v) == 10:
            return datetime.fromisoformat(v)
        return v


class PdfOut(BaseModel):
    data_uri: str


class PrintOut(BaseModel):
    status: str
    mensagem: str
