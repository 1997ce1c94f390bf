from fastapi import APIRouter
from fastapi.responses import PlainTextResponse

router = APIRouter(tags=["health"])


@router.get("/", response_class=PlainTextResponse)
async def root():
    return "Inventory vision backend is running"


@router.get("/ping")
async def ping():
    """Reachability check for the mobile client; checks no dependencies."""
    return {"ok": True}
