"""
Query interpretation skill — natural-language query -> ChartConfiguration.

The chat model is an untrusted collaborator: its text is cleaned, parsed
and then run through the same validator as any other candidate.
"""

from __future__ import annotations

import logging
from typing import Any, Sequence

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import HumanMessage, SystemMessage

from app.llm import as_text_from_response, coerce_object, load_json_object, short_error
from app.prompts import CHART_SYSTEM_PROMPT, build_chart_prompt
from core.errors import EmptyResponse, ExternalCapabilityFailure, MalformedResponse
from core.models import ChartConfiguration
from skills.validate import validate_config

logger = logging.getLogger("uvicorn.error")


def parse_candidate(text: str) -> dict:
    """Clean raw model text and parse it into a candidate dict."""
    if not text or not text.strip():
        raise EmptyResponse()
    try:
        return coerce_object(load_json_object(text))
    except ValueError as exc:
        logger.error("Failed to parse chart config: %s", short_error(exc))
        raise MalformedResponse(short_error(exc)) from exc


class QueryInterpreter:
    """Sends (query, headers) to a chat model and validates what comes back."""

    def __init__(self, chat_model: BaseChatModel):
        self.llm = chat_model

    def complete(self, query: str, headers: Sequence[str]) -> str:
        messages = [
            SystemMessage(CHART_SYSTEM_PROMPT),
            HumanMessage(build_chart_prompt(headers, query)),
        ]
        try:
            resp: Any = self.llm.invoke(messages)
        except Exception as exc:
            logger.exception("Chart config request failed")
            raise ExternalCapabilityFailure(short_error(exc)) from exc
        text = as_text_from_response(resp)
        logger.debug("LLM raw text teaser: %r", text[:200])
        return text

    def interpret(self, query: str, headers: Sequence[str]) -> ChartConfiguration:
        text = self.complete(query, headers)
        candidate = parse_candidate(text)
        return validate_config(candidate, headers)
