import json
import re
from typing import List, Any

from langchain_core.messages import AIMessage


# ---------- response text extraction ----------


def _as_text_from_content(content: Any) -> str:
    """Normalize LC content (str | list[chunk] | dict | AIMessage)."""
    if content is None:
        return ""
    if isinstance(content, AIMessage):
        return _as_text_from_content(content.content)
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts: List[str] = []
        for p in content:
            if isinstance(p, str):
                parts.append(p)
            elif isinstance(p, dict):
                t = p.get("text")
                if isinstance(t, str):
                    parts.append(t)
                else:
                    parts.append(str(p))
            else:
                parts.append(str(p))
        return "".join(parts)
    if isinstance(content, dict):
        if isinstance(content.get("text"), str):
            return content["text"]
        if isinstance(content.get("content"), str):
            return content["content"]
        return str(content)
    return str(content)


def as_text_from_response(resp: Any) -> str:
    """
    Try multiple places providers may stash text:
      - resp.content (usual)
      - resp.additional_kwargs.content
      - resp.additional_kwargs.message.content (rare dict shape)
      - a raw dict with "content"
    """
    text = _as_text_from_content(getattr(resp, "content", None))
    if text:
        return text

    extras = getattr(resp, "additional_kwargs", {}) or {}
    if isinstance(extras, dict):
        c2 = extras.get("content")
        if isinstance(c2, str) and c2.strip():
            return c2
        msg = extras.get("message")
        if isinstance(msg, dict):
            mc = msg.get("content")
            if isinstance(mc, str) and mc.strip():
                return mc

    if isinstance(resp, dict):
        c = resp.get("content")
        if isinstance(c, str) and c.strip():
            return c

    if isinstance(resp, str):
        return resp

    return ""


# ---------- JSON cleaning ----------


_re_code_fences = re.compile(r"^```(?:json)?\s*|\s*```\s*$", re.IGNORECASE | re.MULTILINE)
_re_trailing_commas = re.compile(r",(\s*[}\]])")


def strip_code_fences(text: str) -> str:
    return _re_code_fences.sub("", text.strip())


def strip_trailing_commas(text: str) -> str:
    return _re_trailing_commas.sub(r"\1", text)


def clean_json_text(text: str) -> str:
    """Remove Markdown fences and trailing commas from near-valid JSON."""
    return strip_trailing_commas(strip_code_fences(text or "")).strip()


def first_balanced_json(text: str) -> str:
    """Return the first balanced {...} / [...] block embedded in prose."""
    start = None
    for i, ch in enumerate(text):
        if ch in "{[":
            start = i
            break
    if start is None:
        raise ValueError("no JSON start in response")
    depth = 0
    in_string = False
    escaped = False
    for j in range(start, len(text)):
        ch = text[j]
        if in_string:
            # braces inside string literals do not nest
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
        elif ch == '"':
            in_string = True
        elif ch in "{[":
            depth += 1
        elif ch in "}]":
            depth -= 1
            if depth == 0:
                return text[start : j + 1]
    teaser = text[start : start + 400].replace("\n", "\\n")
    raise ValueError(f"unterminated JSON (teaser): {teaser}")


def load_json_object(text: str) -> Any:
    """
    Parse cleaned model text; falls back to the first balanced block when
    the model wrapped the JSON in prose. Raises ValueError on failure.
    """
    txt = clean_json_text(text)
    if not txt:
        raise ValueError("empty LLM response text")
    try:
        return json.loads(txt)
    except json.JSONDecodeError as first_err:
        try:
            block = first_balanced_json(txt)
        except ValueError:
            raise ValueError(str(first_err)) from first_err
        try:
            return json.loads(block)
        except json.JSONDecodeError as e:
            teaser = block[:400].replace("\n", "\\n")
            raise ValueError(f"{e}; teaser={teaser}") from e


def coerce_object(obj: Any) -> dict:
    """
    Ensure we return a single dict. Accepts:
    - dict -> as-is
    - list -> the first dict that looks like a chart config, else the first dict
    Raises ValueError if no usable dict is found.
    """
    if isinstance(obj, dict):
        return obj
    if isinstance(obj, list):
        for it in obj:
            if isinstance(it, dict) and ("chartType" in it or "xAxis" in it):
                return it
        for it in obj:
            if isinstance(it, dict):
                return it
        raise ValueError("array contained no JSON objects")
    raise ValueError(f"expected a JSON object, got {type(obj).__name__}")


def short_error(exc: Exception) -> str:
    msg = str(exc)
    if not msg:
        return exc.__class__.__name__
    msg = msg.replace("\n", " ").strip()
    return msg[:200]
