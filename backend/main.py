import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from db import engine, Base
from models import models  # noqa: F401  registers all ORM models
from routers import fiscal, dashboard, recibos, cep
from config import CORS_ORIGINS

logging.basicConfig(level=logging.INFO,
                    format="%(asctime)s  %(levelname)s  %(name)s — %(message)s")

Base.metadata.create_all(bind=engine)

app = FastAPI(
    title="Loja Fiscal",
    description="Importação de NF-e e emissão de recibos (HTML, PDF e ESC/POS) para a loja de suplementos",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# All API routes live under /api
app.include_router(fiscal.router, prefix="/api")
app.include_router(dashboard.router, prefix="/api")
app.include_router(recibos.router, prefix="/api")
app.include_router(cep.router, prefix="/api")


@app.get("/health", tags=["health"])
async def health():
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=8000)
