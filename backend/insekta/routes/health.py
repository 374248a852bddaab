from fastapi import APIRouter
from insekta.config import VERSION

router = APIRouter(prefix="/api", tags=["health"])


@router.get("/health")
async def health_check():
    """Liveness probe for the load balancer"""
    return {"status": "ok", "version": VERSION}
