"""Market API — CNN Fear & Greed Index."""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from taiwan_pulse.services.base import error_response
from taiwan_pulse.services.deps import get_fear_greed_retriever
from taiwan_pulse.services.market.fear_greed import FearGreedRetriever

router = APIRouter(prefix="/market", tags=["market"])


@router.get("/fear-greed", response_model=None)
async def fear_greed(
    retriever: FearGreedRetriever = Depends(get_fear_greed_retriever),
) -> dict | JSONResponse:
    index = await retriever.fetch_index()
    if index is None:
        return error_response(503, "Failed to fetch Fear & Greed Index")
    return {"success": True, "data": index.model_dump(mode="json")}
