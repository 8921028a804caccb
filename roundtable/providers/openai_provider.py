"""OpenAI provider using openai SDK with native async.

Also serves OpenAI-compatible endpoints (xAI, DeepSeek) when ``base_url`` is set.
"""

from openai import AsyncOpenAI

from roundtable.providers.base import SdkProvider


class OpenAIProvider(SdkProvider):
    """OpenAI (or OpenAI-compatible) provider via openai SDK."""

    label = "OpenAI-compatible"

    def _make_client(self, api_key: str) -> AsyncOpenAI:
        if self._config.base_url:
            return AsyncOpenAI(api_key=api_key, base_url=self._config.base_url)
        return AsyncOpenAI(api_key=api_key)

    async def _complete(self, prompt: str) -> tuple[str, int, int]:
        response = await self._client.chat.completions.create(
            model=self._config.model,
            messages=[{"role": "user", "content": prompt}],
            max_tokens=self._config.max_tokens,
        )
        text = response.choices[0].message.content if response.choices else None
        if response.usage is None:
            return text or "", 0, 0
        return text or "", response.usage.prompt_tokens, response.usage.completion_tokens
