from fastapi import APIRouter, Depends, HTTPException, UploadFile, File
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from typing import List, Optional
from db import get_db
from models.models import TipoOperacao
from schemas.schemas import NotaFiscalOut, XmlImportRequest
from services.fiscal_service import (
    ImportResult, ImportStatus, import_nfe_xml, list_notas, get_nota, delete_nota,
)

router = APIRouter(prefix="/fiscal", tags=["fiscal"])

_XML_TYPES = {"application/xml", "text/xml"}

_STATUS_CODES = {
    ImportStatus.xml_invalido: 400,
    ImportStatus.duplicada: 409,
    ImportStatus.falha_gravacao: 500,
}


def _import_response(result: ImportResult):
    if not result.ok:
        raise HTTPException(status_code=_STATUS_CODES[result.status], detail=result.mensagem)
    return result.nota


@router.post("/importar", response_model=NotaFiscalOut, status_code=201)
async def import_xml_file(file: UploadFile = File(...), db: Session = Depends(get_db)):
    fname = (file.filename or "").lower()
    ct = (file.content_type or "").lower()
    if not fname.endswith(".xml") and ct not in _XML_TYPES:
        raise HTTPException(status_code=400,
                            detail="Por favor, selecione um arquivo XML válido")
    content = await file.read()
    if not content.strip():
        raise HTTPException(status_code=400, detail="Arquivo XML vazio")
    return _import_response(import_nfe_xml(db, content))


@router.post("/importar/texto", response_model=NotaFiscalOut, status_code=201)
async def import_xml_text(data: XmlImportRequest, db: Session = Depends(get_db)):
    if not data.xml.strip():
        raise HTTPException(status_code=400,
                            detail="Por favor, selecione um arquivo XML ou cole o conteúdo")
    return _import_response(import_nfe_xml(db, data.xml))


@router.get("/notas", response_model=List[NotaFiscalOut])
async def list_invoices(search: Optional[str] = None,
                        tipo: Optional[TipoOperacao] = None,
                        skip: int = 0, limit: int = 50,
                        db: Session = Depends(get_db)):
    return list_notas(db, search=search, tipo=tipo, skip=skip, limit=limit)


@router.get("/notas/{nota_id}", response_model=NotaFiscalOut)
async def get_invoice(nota_id: int, db: Session = Depends(get_db)):
    nota = get_nota(db, nota_id)
    if not nota:
        raise HTTPException(status_code=404, detail="Nota não encontrada")
    return nota


@router.delete("/notas/{nota_id}")
async def delete_invoice(nota_id: int, db: Session = Depends(get_db)):
    try:
        deleted = delete_nota(db, nota_id)
    except SQLAlchemyError:
        raise HTTPException(status_code=500, detail="Erro ao excluir a nota fiscal")
    if not deleted:
        raise HTTPException(status_code=404, detail="Nota não encontrada")
    return {"ok": True}
