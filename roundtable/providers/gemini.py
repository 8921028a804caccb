"""Gemini provider using google-genai SDK with native async."""

from google import genai
from google.genai import types as genai_types

from roundtable.providers.base import SdkProvider


class GeminiProvider(SdkProvider):
    """Google Gemini provider via google-genai SDK."""

    label = "Gemini"

    def _make_client(self, api_key: str) -> genai.Client:
        return genai.Client(api_key=api_key)

    async def _complete(self, prompt: str) -> tuple[str, int, int]:
        response = await self._client.aio.models.generate_content(
            model=self._config.model,
            contents=prompt,
            config=genai_types.GenerateContentConfig(max_output_tokens=self._config.max_tokens),
        )
        meta = response.usage_metadata
        if meta is None:
            return response.text or "", 0, 0
        return response.text or "", meta.prompt_token_count or 0, meta.candidates_token_count or 0
