from fastapi import APIRouter, HTTPException
from fastapi.responses import HTMLResponse, Response
from schemas.schemas import Recibo, PdfOut, PrintOut
from services.receipt_html import render_receipt_html
from services.thermal_printer import PrintStatus, build_escpos_commands, print_thermal_receipt
from services.pdf_service import generate_receipt_pdf_data_uri

router = APIRouter(prefix="/recibos", tags=["recibos"])


@router.post("/html", response_class=HTMLResponse)
async def receipt_html(recibo: Recibo, auto_print: bool = True):
    """Printable page; open it in a new window and it prints itself."""
    return HTMLResponse(render_receipt_html(recibo, auto_print=auto_print))


@router.post("/pdf", response_model=PdfOut)
async def receipt_pdf(recibo: Recibo):
    return PdfOut(data_uri=generate_receipt_pdf_data_uri(recibo))


@router.post("/escpos")
async def receipt_escpos(recibo: Recibo):
    return Response(
        content=build_escpos_commands(recibo),
        media_type="application/octet-stream",
        headers={"Content-Disposition": f"attachment; filename=recibo_{recibo.numero}.bin"},
    )


@router.post("/imprimir", response_model=PrintOut)
def receipt_print(recibo: Recibo):
    """Only the configured THERMAL_PRINTER_PORT is ever opened."""
    # sync handler: pyserial blocks, FastAPI runs this in its threadpool
    result = print_thermal_receipt(recibo)
    if result.status == PrintStatus.indisponivel:
        raise HTTPException(status_code=503, detail=result.mensagem)
    if result.status == PrintStatus.falha:
        raise HTTPException(status_code=502, detail=result.mensagem)
    return PrintOut(status=result.status.value, mensagem=result.mensagem)
