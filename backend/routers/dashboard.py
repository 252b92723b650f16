from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from db import get_db
from schemas.schemas import FiscalStats
from services.fiscal_service import fiscal_stats

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/fiscal", response_model=FiscalStats)
async def get_fiscal_stats(db: Session = Depends(get_db)):
    return FiscalStats(**fiscal_stats(db))
