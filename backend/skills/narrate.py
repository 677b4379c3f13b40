"""
Narration skill — uses the LLM to turn summary statistics into a short insight.

Insights are supplementary: any failure degrades to a fixed fallback string.
"""

from __future__ import annotations

import logging
from typing import Dict, Optional

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import HumanMessage, SystemMessage

from app.llm import as_text_from_response
from app.prompts import INSIGHT_SYSTEM_PROMPT, build_insight_prompt
from core.models import ColumnStatistics
from skills.summary import describe_statistics

logger = logging.getLogger("uvicorn.error")

FALLBACK_INSIGHT = "Unable to generate insights at this time."


def generate_insights(
    stats: Dict[str, ColumnStatistics],
    chat_model: Optional[BaseChatModel],
) -> Optional[str]:
    """
    Ask the LLM for 3-4 sentences about the dataset.

    Returns None when there are no numeric columns to talk about, and
    FALLBACK_INSIGHT when the model is unavailable or fails.
    """
    if not stats:
        return None
    if chat_model is None:
        logger.warning("LLM insights unavailable, no chat model configured")
        return FALLBACK_INSIGHT

    try:
        prompt = build_insight_prompt(describe_statistics(stats))
        resp = chat_model.invoke([SystemMessage(INSIGHT_SYSTEM_PROMPT), HumanMessage(prompt)])
        text = as_text_from_response(resp).strip()
        if not text:
            raise ValueError("No content in API response")
        return text
    except Exception as e:
        logger.warning("LLM insights unavailable, using fallback: %s", e)
        return FALLBACK_INSIGHT
