import httpx
import logging
from typing import Optional
from config import VIACEP_URL, CEP_TIMEOUT
from services.validators import only_digits

logger = logging.getLogger(__name__)


async def fetch_address_by_cep(cep: str,
                               transport: Optional[httpx.AsyncBaseTransport] = None) -> Optional[dict]:
    """Look up a CEP on ViaCEP. Returns the address dict or None."""
    clean = only_digits(cep)[:8]
    if len(clean) != 8:
        logger.info(f"CEP inválido — deve ter 8 dígitos: {clean!r}")
        return None
    try:
        async with httpx.AsyncClient(timeout=CEP_TIMEOUT, transport=transport) as client:
            resp = await client.get(f"{VIACEP_URL}/{clean}/json/",
                                    headers={"Accept": "application/json"})
            resp.raise_for_status()
            data = resp.json()
    except httpx.TimeoutException:
        logger.warning(f"ViaCEP timeout — CEP {clean}")
        return None
    except httpx.HTTPError as e:
        logger.error(f"ViaCEP error ({clean}): {e}")
        return None
    except ValueError as e:
        logger.error(f"ViaCEP returned invalid JSON ({clean}): {e}")
        return None

    if not isinstance(data, dict) or data.get("erro"):
        logger.info(f"ViaCEP não encontrou o CEP {clean}")
        return None
    return data
