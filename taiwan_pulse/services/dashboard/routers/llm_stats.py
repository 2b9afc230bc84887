"""LLM Stats API — LLM 使用量統計 (程序內記憶體)."""

from datetime import date

from fastapi import APIRouter

from taiwan_pulse.infra.observability.metrics import get_llm_stats

router = APIRouter(prefix="/llm", tags=["llm"])


@router.get("/stats/{target_date}")
def get_stats(target_date: date) -> dict:
    """特定日期的 LLM 使用量.

    {date, services: {service: {calls, tokens_in, tokens_out}}, total}
    """
    services = get_llm_stats(target_date)
    total = {"calls": 0, "tokens_in": 0, "tokens_out": 0}
    for data in services.values():
        for key in total:
            total[key] += data.get(key, 0)

    return {"date": target_date.isoformat(), "services": services, "total": total}


@router.get("/stats")
def get_today_stats() -> dict:
    """今日 LLM 使用量."""
    return get_stats(date.today())
