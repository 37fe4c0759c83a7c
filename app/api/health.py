from fastapi import APIRouter

from app.core.config import settings

router = APIRouter(tags=["health"])


@router.get("/health")
def health():
    # Storage is only contacted on submit; report whether it is configured
    return {
        "status": "ok",
        "storage_configured": bool(settings.SUPABASE_URL and settings.SUPABASE_KEY),
    }
