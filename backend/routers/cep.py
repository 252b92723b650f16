from fastapi import APIRouter, HTTPException
from services.cep_service import fetch_address_by_cep

router = APIRouter(prefix="/cep", tags=["cep"])


@router.get("/{cep}")
async def lookup_cep(cep: str):
    address = await fetch_address_by_cep(cep)
    if address is None:
        raise HTTPException(status_code=404, detail="CEP não encontrado")
    return address
