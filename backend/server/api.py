"""
Chart routes: query interpretation, chart recompute, summary and insights.

POST /api/query turns a natural-language query into a chart; the other
routes recompute derived views (chart rows, statistics, insights) for the
session's current dataset.
"""

from __future__ import annotations

import json
import logging
import time
from functools import lru_cache
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from langchain_core.language_models.chat_models import BaseChatModel
from starlette.concurrency import run_in_threadpool

from app.llm_loader import LLMConfigError, LLMSettings, create_chat_model
from app.models import ChartResponse, InsightsResponse, QueryRequest, SummaryResponse
from core.errors import ChartConfigError, ExternalCapabilityFailure
from core.models import ChartConfiguration, ColumnStatistics, Dataset
from core.storage import SessionState, begin_query, end_query, get_session, set_config
from core.utils import json_safe_value, records_json_safe
from skills.interpret import QueryInterpreter
from skills.narrate import generate_insights
from skills.process import process_rows
from skills.summary import describe_statistics, statistics_rows, summarize_dataset

logger = logging.getLogger("uvicorn.error")

router = APIRouter(prefix="/api", tags=["charts"])


# ---------------------------------------------------------------------------
# Dependencies & helpers
# ---------------------------------------------------------------------------

def require_session_id(request: Request) -> str:
    sid = request.headers.get("X-Session-Id")
    if not sid:
        raise HTTPException(status_code=400, detail="Missing X-Session-Id header.")
    return sid


@lru_cache(maxsize=1)
def _cached_chat_model() -> BaseChatModel:
    return create_chat_model(LLMSettings.from_env())


def get_chat_model() -> BaseChatModel:
    try:
        return _cached_chat_model()
    except LLMConfigError as exc:
        logger.error("LLM not configured: %s", exc)
        raise HTTPException(status_code=503, detail=str(exc))


def get_optional_chat_model() -> Optional[BaseChatModel]:
    try:
        return _cached_chat_model()
    except LLMConfigError as exc:
        logger.warning("LLM not configured: %s", exc)
        return None


def get_interpreter(chat_model: BaseChatModel = Depends(get_chat_model)) -> QueryInterpreter:
    return QueryInterpreter(chat_model)


def log_response(ctx: str, payload) -> None:
    """Pretty-print JSON-able payloads; fall back to str()."""
    try:
        logger.info("%s response: %s", ctx, json.dumps(payload, indent=2, default=str))
    except Exception:
        logger.info("%s response (non-serializable): %s", ctx, str(payload))


def require_dataset(state: SessionState) -> Dataset:
    if state.dataset is None:
        raise HTTPException(status_code=400, detail="No dataset uploaded.")
    return state.dataset


def stats_payload(stats: Dict[str, ColumnStatistics]) -> Dict[str, Dict[str, Any]]:
    return {
        col: {k: json_safe_value(v) for k, v in s.model_dump(by_alias=True).items()}
        for col, s in stats.items()
    }


def chart_payload(dataset: Dataset, config: ChartConfiguration) -> dict:
    rows = records_json_safe(process_rows(dataset, config))
    return ChartResponse(
        config=config.to_wire(),
        rows=rows,
        pointCount=len(rows),
        description=config.describe(),
    ).model_dump()


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post("/query")
async def query_chart(
    body: QueryRequest,
    sid: str = Depends(require_session_id),
    interpreter: QueryInterpreter = Depends(get_interpreter),
):
    """
    Interpret a query against the current dataset and return chart rows.

    Only one query per session may be in flight; a query that finishes after
    a newer upload is discarded.
    """
    dataset = require_dataset(get_session(sid))

    generation = begin_query(sid)
    if generation is None:
        raise HTTPException(status_code=409, detail="A query is already in progress for this session.")

    t0 = time.perf_counter()
    try:
        config = await run_in_threadpool(interpreter.interpret, body.query, list(dataset.headers))
    except ExternalCapabilityFailure as e:
        raise HTTPException(status_code=502, detail=str(e))
    except ChartConfigError as e:
        logger.warning("Query rejected: %s", e)
        raise HTTPException(status_code=422, detail=str(e))
    finally:
        end_query(sid)

    if not set_config(sid, config, generation):
        raise HTTPException(
            status_code=409,
            detail="The dataset changed while the query was running. Please resubmit.",
        )

    resp = chart_payload(dataset, config)
    logger.info(
        "QUERY meta: %s",
        {"query": body.query, "duration_ms": int((time.perf_counter() - t0) * 1000)},
    )
    log_response("QUERY", resp)
    return resp


@router.get("/chart")
async def current_chart(sid: str = Depends(require_session_id)):
    state = get_session(sid)
    dataset = require_dataset(state)
    if state.config is None:
        raise HTTPException(status_code=404, detail="No chart configured for this session.")
    return chart_payload(dataset, state.config)


@router.get("/summary")
async def summary(sid: str = Depends(require_session_id)):
    dataset = require_dataset(get_session(sid))
    stats = summarize_dataset(dataset)
    resp = SummaryResponse(
        columns=stats_payload(stats),
        table=records_json_safe(statistics_rows(stats)),
        description=describe_statistics(stats),
    ).model_dump()
    log_response("SUMMARY", resp)
    return resp


@router.post("/insights")
async def insights(
    sid: str = Depends(require_session_id),
    chat_model: Optional[BaseChatModel] = Depends(get_optional_chat_model),
):
    dataset = require_dataset(get_session(sid))
    stats = summarize_dataset(dataset)
    text = await run_in_threadpool(generate_insights, stats, chat_model)
    return InsightsResponse(insights=text).model_dump()
