"""LLM infrastructure — provider interface, factory, response parsing, implementations."""

from .base import BaseLLMProvider, LLMResponse, NullLLMProvider
from .factory import LLMFactory, register_provider
from .parsing import ParseError, ParseOk, ParseResult, clean_json_text, parse_json_payload

__all__ = [
    "BaseLLMProvider",
    "LLMResponse",
    "NullLLMProvider",
    "LLMFactory",
    "register_provider",
    "ParseError",
    "ParseOk",
    "ParseResult",
    "clean_json_text",
    "parse_json_payload",
]
