"""Anthropic Claude provider using anthropic SDK with native async."""

import anthropic as anthropic_sdk

from roundtable.providers.base import SdkProvider


class AnthropicProvider(SdkProvider):
    """Anthropic Claude provider via anthropic SDK."""

    label = "Anthropic"

    def _make_client(self, api_key: str) -> anthropic_sdk.AsyncAnthropic:
        return anthropic_sdk.AsyncAnthropic(api_key=api_key)

    async def _complete(self, prompt: str) -> tuple[str, int, int]:
        response = await self._client.messages.create(
            model=self._config.model,
            max_tokens=self._config.max_tokens,
            messages=[{"role": "user", "content": prompt}],
        )
        text = "\n".join(b.text for b in response.content or [] if b.type == "text")
        usage = response.usage
        if usage is None:
            return text, 0, 0
        return text, usage.input_tokens, usage.output_tokens
