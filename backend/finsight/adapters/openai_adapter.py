"""OpenAI adapter."""
from decimal import Decimal
from typing import Any, Dict, List
from openai import AsyncOpenAI
from finsight.adapters.base import InsightAdapter, extract_json
from finsight.config import settings
from finsight.adapters.prompts import PromptBuilder


class OpenAIAdapter(InsightAdapter):
    """OpenAI API adapter."""

    def __init__(self, model_id: str = "gpt-4o-mini", **kwargs):
        super().__init__(model_id, **kwargs)
        api_key = kwargs.get("api_key") or settings.openai_api_key
        if not api_key:
            raise ValueError("OpenAI API key required")
        self.client = AsyncOpenAI(api_key=api_key)
        self.prompts = PromptBuilder()

    async def analyze_receipt(self, image_b64: str, mime_type: str = "image/jpeg") -> Dict[str, Any]:
        """Read a receipt using OpenAI vision input."""
        try:
            response = await self.client.chat.completions.create(
                model=self.model_id,
                messages=[
                    {"role": "system", "content": "You extract data from receipts. Always respond with valid JSON."},
                    {
                        "role": "user",
                        "content": [
                            {"type": "text", "text": self.prompts.build_receipt_prompt()},
                            {"type": "image_url", "image_url": {"url": f"data:{mime_type};base64,{image_b64}"}},
                        ],
                    },
                ],
                response_format={"type": "json_object"},
            )
            return extract_json(response.choices[0].message.content or "")
        except Exception as e:
            raise RuntimeError(f"OpenAI API error: {str(e)}")

    async def generate_insights(self, summary: str) -> List[str]:
        """Generate insights using OpenAI API."""
        try:
            response = await self.client.chat.completions.create(
                model=self.model_id,
                messages=[
                    {"role": "system", "content": "You are a financial advisor. Respond with a JSON array of strings only."},
                    {"role": "user", "content": self.prompts.build_insights_prompt(summary)},
                ],
                temperature=0.7,
            )
            return extract_json(response.choices[0].message.content or "")
        except Exception as e:
            raise RuntimeError(f"OpenAI API error: {str(e)}")

    async def suggest_category(self, note: str, amount: Decimal) -> str:
        """Categorize using OpenAI API."""
        try:
            response = await self.client.chat.completions.create(
                model=self.model_id,
                messages=[{"role": "user", "content": self.prompts.build_category_prompt(note, amount)}],
                max_tokens=10,
                temperature=0,
            )
            return (response.choices[0].message.content or "").strip()
        except Exception as e:
            raise RuntimeError(f"OpenAI API error: {str(e)}")
