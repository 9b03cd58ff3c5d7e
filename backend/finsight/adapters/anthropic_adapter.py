"""Anthropic Claude adapter."""
from decimal import Decimal
from typing import Any, Dict, List
from anthropic import AsyncAnthropic
from finsight.adapters.base import InsightAdapter, extract_json
from finsight.config import settings
from finsight.adapters.prompts import PromptBuilder


class AnthropicAdapter(InsightAdapter):
    """Anthropic Claude API adapter."""

    def __init__(self, model_id: str = "claude-haiku-4-5-20251001", **kwargs):
        super().__init__(model_id, **kwargs)
        api_key = kwargs.get("api_key") or settings.anthropic_api_key
        if not api_key:
            raise ValueError("Anthropic API key required")
        self.client = AsyncAnthropic(api_key=api_key)
        self.prompts = PromptBuilder()

    async def _complete(self, content, max_tokens: int = 1024) -> str:
        response = await self.client.messages.create(
            model=self.model_id,
            max_tokens=max_tokens,
            messages=[{"role": "user", "content": content}],
        )
        return response.content[0].text or ""

    async def analyze_receipt(self, image_b64: str, mime_type: str = "image/jpeg") -> Dict[str, Any]:
        """Read a receipt using Claude vision input."""
        try:
            content = await self._complete([
                {"type": "image", "source": {"type": "base64", "media_type": mime_type, "data": image_b64}},
                {"type": "text", "text": f"{self.prompts.build_receipt_prompt()}\n\nRespond with valid JSON only."},
            ])
            # Extract JSON from response (may have markdown code blocks)
            return extract_json(content)
        except Exception as e:
            raise RuntimeError(f"Anthropic API error: {str(e)}")

    async def generate_insights(self, summary: str) -> List[str]:
        """Generate insights using Anthropic API."""
        try:
            content = await self._complete(
                f"{self.prompts.build_insights_prompt(summary)}\n\nRespond with valid JSON only."
            )
            return extract_json(content)
        except Exception as e:
            raise RuntimeError(f"Anthropic API error: {str(e)}")

    async def suggest_category(self, note: str, amount: Decimal) -> str:
        """Categorize using Anthropic API."""
        try:
            content = await self._complete(self.prompts.build_category_prompt(note, amount), max_tokens=10)
            return content.strip()
        except Exception as e:
            raise RuntimeError(f"Anthropic API error: {str(e)}")
