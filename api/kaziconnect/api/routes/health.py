from fastapi import APIRouter

from kaziconnect import __version__

router = APIRouter()


@router.get("/")
async def root() -> dict[str, str]:
    return {"service": "kaziconnect", "version": __version__, "docs": "/docs"}


@router.get("/healthz")
async def healthz() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/health")
async def health() -> dict[str, object]:
    return {"success": True, "message": "KaziConnect API is running", "status": "ok"}
