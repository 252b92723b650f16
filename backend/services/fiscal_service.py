"""
NF-e persistence: duplicate check, header + items in one transaction,
listing, deletion and dashboard totals.
"""

import enum
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional
from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from models.models import NotaFiscal, ItemNota, TipoOperacao
from schemas.schemas import NFeParsed
from services.xml_service import parse_nfe_xml

logger = logging.getLogger(__name__)


class ImportStatus(str, enum.Enum):
    importada = "importada"
    xml_invalido = "xml_invalido"
    duplicada = "duplicada"
    falha_gravacao = "falha_gravacao"


@dataclass
class ImportResult:
    status: ImportStatus
    mensagem: str
    nota: Optional[NotaFiscal] = None

    @property
    def ok(self) -> bool:
        return self.status == ImportStatus.importada


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Offset-aware NF-e timestamps are stored as naive UTC; SQLite keeps no offset."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def _nota_from_parsed(parsed: NFeParsed, xml_content: Optional[str]) -> NotaFiscal:
    t = parsed.totais
    return NotaFiscal(
        chave_acesso=parsed.chave,
        numero=parsed.numero,
        serie=parsed.serie,
        natureza_operacao=parsed.natureza_operacao,
        data_emissao=_as_utc(parsed.data_emissao),
        data_saida=_as_utc(parsed.data_saida),
        tipo_operacao=parsed.tipo_operacao,
        emitente_cnpj=parsed.emitente.cpf_cnpj,
        emitente_razao_social=parsed.emitente.nome,
        emitente_fantasia=parsed.emitente.fantasia,
        emitente_ie=parsed.emitente.ie,
        emitente_endereco=parsed.emitente.endereco.model_dump(),
        destinatario_cpf_cnpj=parsed.destinatario.cpf_cnpj,
        destinatario_nome=parsed.destinatario.nome,
        destinatario_ie=parsed.destinatario.ie,
        destinatario_endereco=parsed.destinatario.endereco.model_dump(),
        valor_total=t.valor_total,
        valor_produtos=t.valor_produtos,
        valor_icms=t.valor_icms,
        valor_ipi=t.valor_ipi,
        valor_pis=t.valor_pis,
        valor_cofins=t.valor_cofins,
        valor_frete=t.valor_frete,
        valor_desconto=t.valor_desconto,
        situacao=parsed.situacao,
        protocolo=parsed.protocolo,
        codigo_status=parsed.codigo_status,
        xml_content=xml_content,
    )


def _item_rows(nota_id: int, parsed: NFeParsed) -> List[ItemNota]:
    return [
        ItemNota(
            nota_id=nota_id,
            numero_item=item.numero_item,
            codigo_produto=item.codigo_produto,
            ean=item.ean,
            descricao=item.descricao,
            ncm=item.ncm,
            cfop=item.cfop,
            unidade=item.unidade,
            quantidade=item.quantidade,
            valor_unitario=item.valor_unitario,
            valor_total=item.valor_total,
            valor_icms=item.impostos.icms,
            valor_ipi=item.impostos.ipi,
            valor_pis=item.impostos.pis,
            valor_cofins=item.impostos.cofins,
        )
        for item in parsed.itens
    ]


def chave_exists(db: Session, chave: str) -> bool:
    return db.query(NotaFiscal.id).filter(NotaFiscal.chave_acesso == chave).first() is not None


def save_parsed_nfe(db: Session, parsed: NFeParsed,
                    xml_content: Optional[str] = None) -> ImportResult:
    """
    Persist an already parsed NF-e.

    The existence check runs before any write. Header and item rows go out
    in a single transaction: if anything fails, nothing is kept.
    """
    try:
        if chave_exists(db, parsed.chave):
            logger.warning(f"NF-e duplicada ignorada: chave={parsed.chave}")
            return ImportResult(ImportStatus.duplicada, "Esta nota fiscal já foi importada")

        nota = _nota_from_parsed(parsed, xml_content)
        db.add(nota)
        db.flush()
        db.add_all(_item_rows(nota.id, parsed))
        db.commit()
    except IntegrityError:
        # concurrent import of the same key won the race to the unique index
        db.rollback()
        logger.warning(f"NF-e duplicada (índice único): chave={parsed.chave}")
        return ImportResult(ImportStatus.duplicada, "Esta nota fiscal já foi importada")
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Erro ao gravar NF-e {parsed.chave}: {e}")
        return ImportResult(ImportStatus.falha_gravacao, "Erro ao importar a nota fiscal")

    db.refresh(nota)
    logger.info(f"NF-e {nota.numero} importada: id={nota.id} itens={len(parsed.itens)}")
    return ImportResult(ImportStatus.importada,
                        f"NFe {nota.numero} importada com sucesso", nota)


def import_nfe_xml(db: Session, xml_content: str | bytes) -> ImportResult:
    if isinstance(xml_content, bytes):
        xml_content = xml_content.decode("utf-8-sig", errors="replace")
    parsed = parse_nfe_xml(xml_content)
    if parsed is None:
        return ImportResult(ImportStatus.xml_invalido,
                            "Não foi possível processar o XML da NFe")
    return save_parsed_nfe(db, parsed, xml_content)


def list_notas(db: Session, search: Optional[str] = None,
               tipo: Optional[TipoOperacao] = None,
               skip: int = 0, limit: int = 50) -> List[NotaFiscal]:
    q = db.query(NotaFiscal)
    if search:
        term = f"%{search.strip()}%"
        q = q.filter(or_(
            NotaFiscal.numero.ilike(term),
            NotaFiscal.emitente_razao_social.ilike(term),
            NotaFiscal.destinatario_nome.ilike(term),
            NotaFiscal.chave_acesso.contains(search.strip()),
        ))
    if tipo:
        q = q.filter(NotaFiscal.tipo_operacao == tipo)
    return q.order_by(NotaFiscal.data_emissao.desc()).offset(skip).limit(limit).all()


def get_nota(db: Session, nota_id: int) -> Optional[NotaFiscal]:
    return db.query(NotaFiscal).filter(NotaFiscal.id == nota_id).first()


def delete_nota(db: Session, nota_id: int) -> bool:
    """Delete an invoice and, through the cascade, its items."""
    nota = get_nota(db, nota_id)
    if not nota:
        return False
    try:
        db.delete(nota)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Erro ao excluir NF-e {nota_id}: {e}")
        raise
    logger.info(f"NF-e {nota_id} excluída")
    return True


def fiscal_stats(db: Session) -> dict:
    total_notas = db.query(func.count(NotaFiscal.id)).scalar() or 0
    valor_total = db.query(func.sum(NotaFiscal.valor_total)).scalar() or 0.0
    entradas = db.query(func.count(NotaFiscal.id)).filter(
        NotaFiscal.tipo_operacao == TipoOperacao.entrada).scalar() or 0
    saidas = db.query(func.count(NotaFiscal.id)).filter(
        NotaFiscal.tipo_operacao == TipoOperacao.saida).scalar() or 0
    return {
        "total_notas": total_notas,
        "valor_total": valor_total,
        "entradas": entradas,
        "saidas": saidas,
    }
