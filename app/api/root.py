from fastapi import APIRouter

router = APIRouter()

@router.get("/")
def root():
    return {
        "name": "Registration Form Service",
        "status": "ok",
        "docs": "/docs",
        "health": "/health",
        "register": "/registrations",
    }
