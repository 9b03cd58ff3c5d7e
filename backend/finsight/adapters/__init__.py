from .base import InsightAdapter, extract_json
from .mock import MockInsightAdapter
from .openai_adapter import OpenAIAdapter
from .anthropic_adapter import AnthropicAdapter
from .gemini_adapter import GeminiAdapter
from .factory import get_insight_adapter
from .prompts import PromptBuilder

__all__ = [
    "InsightAdapter",
    "extract_json",
    "MockInsightAdapter",
    "OpenAIAdapter",
    "AnthropicAdapter",
    "GeminiAdapter",
    "get_insight_adapter",
    "PromptBuilder",
]
