from fastapi import APIRouter

router = APIRouter(tags=["Utils"])


@router.get("/health")
async def health_check() -> dict[str, str]:
    return {"status": "ok"}
