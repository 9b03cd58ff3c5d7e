"""Google Gemini adapter."""
import base64
from decimal import Decimal
from typing import Any, Dict, List
from google import genai
from google.genai import types
from finsight.adapters.base import InsightAdapter, extract_json
from finsight.config import settings
from finsight.adapters.prompts import PromptBuilder


class GeminiAdapter(InsightAdapter):
    """Google Gemini API adapter."""

    def __init__(self, model_id: str = "gemini-2.5-flash", **kwargs):
        super().__init__(model_id, **kwargs)
        api_key = kwargs.get("api_key") or settings.google_api_key
        if not api_key:
            raise ValueError("Google API key required")
        self.client = genai.Client(api_key=api_key)
        self.prompts = PromptBuilder()

    async def _generate(self, contents, json_output: bool = True) -> str:
        config = None
        if json_output:
            config = types.GenerateContentConfig(response_mime_type="application/json")
        response = await self.client.aio.models.generate_content(
            model=self.model_id,
            contents=contents,
            config=config,
        )
        return response.text or ""

    async def analyze_receipt(self, image_b64: str, mime_type: str = "image/jpeg") -> Dict[str, Any]:
        """Read a receipt using Gemini's multimodal input."""
        try:
            image = types.Part.from_bytes(data=base64.b64decode(image_b64), mime_type=mime_type)
            content = await self._generate([image, self.prompts.build_receipt_prompt()])
            return extract_json(content)
        except Exception as e:
            raise RuntimeError(f"Gemini API error: {str(e)}")

    async def generate_insights(self, summary: str) -> List[str]:
        """Generate insights using Gemini API."""
        try:
            content = await self._generate(self.prompts.build_insights_prompt(summary))
            return extract_json(content)
        except Exception as e:
            raise RuntimeError(f"Gemini API error: {str(e)}")

    async def suggest_category(self, note: str, amount: Decimal) -> str:
        """Categorize using Gemini API."""
        try:
            content = await self._generate(
                self.prompts.build_category_prompt(note, amount),
                json_output=False,
            )
            return content.strip()
        except Exception as e:
            raise RuntimeError(f"Gemini API error: {str(e)}")
