from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Request

from todolist.core.deps import optional_identity
from todolist.core.security import Identity

router = APIRouter()

API_NAME = "Todo List API"


@router.get("/health")
def health(request: Request):
    # Check si l'API est up
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": request.app.state.settings.APP_ENV,
    }


@router.get("/")
def index(request: Request, identity: Optional[Identity] = Depends(optional_identity)):
    return {
        "message": API_NAME,
        "version": request.app.version,
        "user": identity.email if identity else None,
    }
