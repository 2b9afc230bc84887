"""LLM 回應解析 — 未驗證的外部 payload 不得越過此邊界.

parse_json_payload() 回傳 tagged result:
    ParseOk(value)      — JSON 解析成功 (尚未做 schema 驗證)
    ParseError(raw, …)  — 原始文字保留, 供日誌使用

搜尋 (grounding) 模式無法強制 JSON, 模型偶爾會包上 ```json 區塊或前後加說明,
所以先 clean_json_text() 再解析.
"""

import json
import re
from dataclasses import dataclass
from typing import Any, Literal, TypeVar

from pydantic import BaseModel, ValidationError

_FENCE_RE = re.compile(r"```(?:json)?\s*", re.IGNORECASE)

_CLOSERS = {"{": "}", "[": "]"}

M = TypeVar("M", bound=BaseModel)


@dataclass(frozen=True)
class ParseOk:
    value: Any


@dataclass(frozen=True)
class ParseError:
    raw_text: str
    reason: str


ParseResult = ParseOk | ParseError


def clean_json_text(text: str, opener: Literal["{", "["] = "{") -> str:
    """去除 code fence, 再從第一個 opener 切到最後一個對應的 closer.

    找不到成對括號時回傳去除 fence 後的文字 (交給 json 解析判定失敗).
    """
    cleaned = _FENCE_RE.sub("", text or "")
    closer = _CLOSERS[opener]
    first = cleaned.find(opener)
    last = cleaned.rfind(closer)
    if first != -1 and last > first:
        return cleaned[first : last + 1]
    return cleaned.strip()


def parse_json_payload(
    text: str | None,
    *,
    opener: Literal["{", "["] = "{",
    clean: bool = True,
) -> ParseResult:
    """LLM 回應文字 → ParseOk | ParseError. 不會丟出例外."""
    if not text or not text.strip():
        return ParseError(raw_text=text or "", reason="empty response")

    candidate = clean_json_text(text, opener) if clean else text
    try:
        value = json.loads(candidate)
    except (json.JSONDecodeError, ValueError) as e:
        return ParseError(raw_text=text, reason=f"invalid json: {e}")

    expected = dict if opener == "{" else list
    if not isinstance(value, expected):
        return ParseError(raw_text=text, reason=f"expected {expected.__name__}, got {type(value).__name__}")
    return ParseOk(value=value)


def validate_payload(result: ParseResult, model: type[M]) -> M | None:
    """ParseOk → pydantic 模型. 解析或驗證失敗回傳 None."""
    if not isinstance(result, ParseOk):
        return None
    try:
        return model.model_validate(result.value)
    except ValidationError:
        return None
