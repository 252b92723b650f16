import os
from dotenv import load_dotenv

load_dotenv()
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./loja_fiscal.db")
CORS_ORIGINS = os.getenv("CORS_ORIGINS", "http://localhost:5173,http://localhost:3000").split(",")

# Store identity printed on receipts
STORE_NAME = os.getenv("STORE_NAME", "Nutri & Fit Suplementos")
STORE_ADDRESS = os.getenv("STORE_ADDRESS", "Av. Rio Doce, 1075 - Ilha dos Araújos")
STORE_PHONE = os.getenv("STORE_PHONE", "(33) 98404-3348")
STORE_PIX = os.getenv("STORE_PIX", "33984043348 - Diogo S. Martins")
STORE_SYSTEM_NAME = os.getenv("STORE_SYSTEM_NAME", "Sistema Nutri & Fit")

THERMAL_PRINTER_PORT = os.getenv("THERMAL_PRINTER_PORT", "")
THERMAL_PRINTER_BAUDRATE = int(os.getenv("THERMAL_PRINTER_BAUDRATE", 9600))
THERMAL_PRINTER_TIMEOUT = 5  # seconds

VIACEP_URL = os.getenv("VIACEP_URL", "https://viacep.com.br/ws")
CEP_TIMEOUT = 8  # seconds
