from fastapi import APIRouter

from ..services import registry

router = APIRouter(tags=["health"])

@router.get("", summary="Liveness probe")
def health():
    return {"status": "ok", "datasets": len(registry.list_datasets())}
