from fastapi import APIRouter
from config.settings import get_settings

router = APIRouter()

@router.get("/")
def healthcheck():
    s = get_settings()
    return {"ok": True, "configured": bool(s.project_key and s.client_id and s.client_secret)}
