from fastapi import APIRouter

router = APIRouter()


@router.get("/health", summary="Application health check")
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}
