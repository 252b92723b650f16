from sqlalchemy import Column, Integer, String, Float, DateTime, ForeignKey, Enum, Text, JSON
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum
from db import Base


class TipoOperacao(str, enum.Enum):
    entrada = "entrada"
    saida = "saida"


class SituacaoNFe(str, enum.Enum):
    autorizada = "autorizada"
    denegada = "denegada"
    pendente = "pendente"


class NotaFiscal(Base):
    __tablename__ = "notas_fiscais"
    id = Column(Integer, primary_key=True)
    chave_acesso = Column(String(44), unique=True, nullable=False, index=True)
    numero = Column(String)
    serie = Column(String)
    natureza_operacao = Column(String)
    data_emissao = Column(DateTime)  # UTC
    data_saida = Column(DateTime)  # UTC
    tipo_operacao = Column(Enum(TipoOperacao), nullable=False, default=TipoOperacao.saida)
    # Emitente
    emitente_cnpj = Column(String)
    emitente_razao_social = Column(String)
    emitente_fantasia = Column(String)
    emitente_ie = Column(String)
    emitente_endereco = Column(JSON)
    # Destinatário
    destinatario_cpf_cnpj = Column(String)
    destinatario_nome = Column(String)
    destinatario_ie = Column(String)
    destinatario_endereco = Column(JSON)
    # Totais
    valor_total = Column(Float, default=0)
    valor_produtos = Column(Float, default=0)
    valor_icms = Column(Float, default=0)
    valor_ipi = Column(Float, default=0)
    valor_pis = Column(Float, default=0)
    valor_cofins = Column(Float, default=0)
    valor_frete = Column(Float, default=0)
    valor_desconto = Column(Float, default=0)
    # Protocolo
    situacao = Column(Enum(SituacaoNFe), nullable=False, default=SituacaoNFe.pendente)
    protocolo = Column(String)
    codigo_status = Column(String)
    xml_content = Column(Text)
    data_importacao = Column(DateTime(timezone=True), server_default=func.now())
    itens = relationship("ItemNota", back_populates="nota", cascade="all, delete-orphan",
                         order_by="ItemNota.numero_item")


class ItemNota(Base):
    __tablename__ = "itens_nota"
    id = Column(Integer, primary_key=True)
    nota_id = Column(Integer, ForeignKey("notas_fiscais.id", ondelete="CASCADE"), nullable=False)
    numero_item = Column(Integer, nullable=False)
    codigo_produto = Column(String)
    ean = Column(String)
    descricao = Column(String)
    ncm = Column(String)
    cfop = Column(String)
    unidade = Column(String)
    quantidade = Column(Float)
    valor_unitario = Column(Float)
    valor_total = Column(Float)
    valor_icms = Column(Float, default=0)
    valor_ipi = Column(Float, default=0)
    valor_pis = Column(Float, default=0)
    valor_cofins = Column(Float, default=0)
    nota = relationship("NotaFiscal", back_populates="itens")
