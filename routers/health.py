import asyncio

from fastapi import APIRouter, Request
from tortoise import connections

router = APIRouter(prefix="/api", tags=["health"])


async def _db_ok() -> bool:
    try:
        await connections.get("default").execute_query("SELECT 1")
        return True
    except Exception:
        return False


@router.get("/health")
async def health(request: Request):
    ok_db = await _db_ok()
    ok_s3 = await asyncio.to_thread(request.app.state.pipeline.gateway.ping)
    return {"ok": ok_db and ok_s3, "db": ok_db, "s3": ok_s3}
