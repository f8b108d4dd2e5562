import time

from fastapi import APIRouter, Depends

from starquiz.core.dependencies import get_fact_store
from starquiz.schemas.quiz import PoolSizes
from starquiz.services.fact_store import FactStore

router = APIRouter(tags=["system"])


@router.get("/health")
def health():
    return {"ok": True, "ts": int(time.time() * 1000)}


@router.get("/debug", response_model=PoolSizes)
def debug(store: FactStore = Depends(get_fact_store)) -> PoolSizes:
    """Pool sizes after load, for operators."""
    return PoolSizes(**store.pool_sizes())
