# app/health.py
from fastapi import APIRouter, Request

router = APIRouter()


@router.get("/health")
def health(request: Request):
    return {"ok": True, "app": request.app.title}
