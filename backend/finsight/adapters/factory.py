"""Factory for creating insight adapters."""
from finsight.adapters.base import InsightAdapter
from finsight.adapters.mock import MockInsightAdapter
from finsight.adapters.openai_adapter import OpenAIAdapter
from finsight.adapters.anthropic_adapter import AnthropicAdapter
from finsight.adapters.gemini_adapter import GeminiAdapter


def get_insight_adapter(model_id: str, **kwargs) -> InsightAdapter:
    """
    Factory function to create appropriate adapter based on model_id.

    Args:
        model_id: Model identifier (e.g., "mock:insights", "gpt-4o-mini", "claude-haiku-4-5-20251001", "gemini-2.5-flash")
        **kwargs: Additional configuration for the adapter

    Returns:
        InsightAdapter instance
    """
    if model_id.startswith("mock:"):
        return MockInsightAdapter(model_id, **kwargs)
    elif model_id.startswith("gpt-") or model_id.startswith("o1-") or "openai" in model_id.lower():
        return OpenAIAdapter(model_id, **kwargs)
    elif "claude" in model_id.lower() or "anthropic" in model_id.lower():
        return AnthropicAdapter(model_id, **kwargs)
    elif "gemini" in model_id.lower() or "google" in model_id.lower():
        return GeminiAdapter(model_id, **kwargs)
    else:
        # Default to mock for unknown models
        return MockInsightAdapter(f"mock:{model_id}", **kwargs)
