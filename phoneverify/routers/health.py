from fastapi import APIRouter, Depends

from ..dependencies import get_issuer
from ..services.issuers import CodeIssuer
from ..utils.clock import utcnow

router = APIRouter(tags=["health"])


@router.get("/healthz", name="healthcheck")
async def healthz(issuer: CodeIssuer = Depends(get_issuer)):
    """Liveness probe. No database access, always 200 while the server runs."""
    return {
        "status": "ok",
        "timestamp": utcnow().isoformat() + "Z",
        "issuer": issuer.name,
    }
