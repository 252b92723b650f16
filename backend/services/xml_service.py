"""
NF-e XML extraction.

Single pass over the ElementTree document: fixed paths for the
identification, issuer, recipient and totals blocks, plus one entry per
<det>. Works with or without the portalfiscal namespace and with or without
the <nfeProc> envelope. Anything that goes wrong ends up as a logged
warning and a None result; callers never see an exception.
"""

import logging
import xml.etree.ElementTree as ET
from datetime import datetime
from typing import Optional
from pydantic import ValidationError
from models.models import TipoOperacao, SituacaoNFe
from schemas.schemas import (
    Endereco, Participante, Totais, ImpostosItem, ItemNFe, NFeParsed,
)

logger = logging.getLogger(__name__)

# infProt/cStat codes
_CSTAT_AUTORIZADA = {"100", "150"}
_CSTAT_DENEGADA = {"110", "205", "301", "302", "303"}


class NFeStructureError(ValueError):
    """A required block (infNFe, ide, emit, dest) is missing."""


def _q(path: str) -> str:
    """'prod/cProd' -> '{*}prod/{*}cProd' so any (or no) namespace matches."""
    return "/".join(p if p in ("", ".") else f"{{*}}{p}" for p in path.split("/"))


def _find(el, path: str):
    return el.find(_q(path)) if el is not None else None


def _text(el, path: str) -> Optional[str]:
    child = _find(el, path)
    if child is None or child.text is None:
        return None
    return child.text.strip()


def _str(el, path: str) -> str:
    return _text(el, path) or ""


def _float(val) -> float:
    try:
        return float(val) if val else 0.0
    except (ValueError, TypeError):
        return 0.0


def _parse_date(val: str | None) -> datetime | None:
    if not val:
        return None
    try:
        return datetime.fromisoformat(val)
    except ValueError:
        return None


def _endereco(el) -> Endereco:
    return Endereco(
        logradouro=_text(el, "xLgr"),
        numero=_text(el, "nro"),
        complemento=_text(el, "xCpl"),
        bairro=_text(el, "xBairro"),
        municipio=_text(el, "xMun"),
        uf=_text(el, "UF"),
        cep=_text(el, "CEP"),
    )


def _participante(el, ender_tag: str) -> Participante:
    return Participante(
        cpf_cnpj=_text(el, "CNPJ") or _text(el, "CPF"),
        nome=_str(el, "xNome"),
        fantasia=_text(el, "xFant"),
        ie=_text(el, "IE"),
        endereco=_endereco(_find(el, ender_tag)),
    )


def _totais(total) -> Totais:
    return Totais(
        valor_total=_float(_text(total, "vNF")),
        valor_produtos=_float(_text(total, "vProd")),
        valor_icms=_float(_text(total, "vICMS")),
        valor_ipi=_float(_text(total, "vIPI")),
        valor_pis=_float(_text(total, "vPIS")),
        valor_cofins=_float(_text(total, "vCOFINS")),
        valor_frete=_float(_text(total, "vFrete")),
        valor_desconto=_float(_text(total, "vDesc")),
    )


def _item(det, position: int) -> ItemNFe:
    prod = _find(det, "prod")
    imposto = _find(det, "imposto")
    return ItemNFe(
        numero_item=position,
        codigo_produto=_str(prod, "cProd"),
        ean=_text(prod, "cEAN"),
        descricao=_str(prod, "xProd"),
        ncm=_text(prod, "NCM"),
        cfop=_text(prod, "CFOP"),
        unidade=_str(prod, "uCom"),
        quantidade=_float(_text(prod, "qCom")),
        valor_unitario=_float(_text(prod, "vUnCom")),
        valor_total=_float(_text(prod, "vProd")),
        impostos=ImpostosItem(
            icms=_float(_text(imposto, "ICMS//vICMS")),
            ipi=_float(_text(imposto, "IPI//vIPI")),
            pis=_float(_text(imposto, "PIS//vPIS")),
            cofins=_float(_text(imposto, "COFINS//vCOFINS")),
        ),
    )


def _tipo_operacao(val: Optional[str]) -> TipoOperacao:
    return TipoOperacao.entrada if (val or "1").strip() == "0" else TipoOperacao.saida


def situacao_from_cstat(cstat: Optional[str]) -> SituacaoNFe:
    if cstat in _CSTAT_AUTORIZADA:
        return SituacaoNFe.autorizada
    if cstat in _CSTAT_DENEGADA:
        return SituacaoNFe.denegada
    return SituacaoNFe.pendente


def _extract(root) -> NFeParsed:
    inf_nfe = root if root.tag.endswith("infNFe") else _find(root, ".//infNFe")
    ide = _find(root, ".//ide")
    emit = _find(root, ".//emit")
    dest = _find(root, ".//dest")
    if inf_nfe is None or ide is None or emit is None or dest is None:
        raise NFeStructureError("XML inválido: estrutura NFe não encontrada")

    total = _find(root, ".//total/ICMSTot")
    inf_prot = _find(root, ".//protNFe/infProt")
    cstat = _text(inf_prot, "cStat")

    return NFeParsed(
        chave=(inf_nfe.get("Id") or "").replace("NFe", "").strip(),
        numero=_str(ide, "nNF"),
        serie=_str(ide, "serie"),
        natureza_operacao=_str(ide, "natOp"),
        data_emissao=_parse_date(_text(ide, "dhEmi")),
        data_saida=_parse_date(_text(ide, "dhSaiEnt")),
        tipo_operacao=_tipo_operacao(_text(ide, "tpNF")),
        emitente=_participante(emit, "enderEmit"),
        destinatario=_participante(dest, "enderDest"),
        totais=_totais(total),
        itens=[_item(det, i) for i, det in enumerate(root.iterfind(_q(".//det")), start=1)],
        protocolo=_text(inf_prot, "nProt"),
        codigo_status=cstat,
        motivo=_text(inf_prot, "xMotivo"),
        situacao=situacao_from_cstat(cstat),
    )


def parse_nfe_xml(xml_content: str | bytes) -> Optional[NFeParsed]:
    """
    Parse an NF-e document.

    Returns the normalized invoice, or None when the text is not well-formed
    XML, a required block is missing, or a field fails validation (e.g. an
    access key that is not 44 digits).
    """
    try:
        root = ET.fromstring(xml_content)
        parsed = _extract(root)
    except ET.ParseError as e:
        logger.warning(f"NF-e XML malformado: {e}")
        return None
    except NFeStructureError as e:
        logger.warning(str(e))
        return None
    except ValidationError as e:
        logger.warning(f"NF-e com campos inválidos: {e.error_count()} erro(s) — {e.errors()[0]['loc']}")
        return None

    logger.info(f"NF-e {parsed.numero} lida: chave={parsed.chave} itens={len(parsed.itens)}")
    return parsed
