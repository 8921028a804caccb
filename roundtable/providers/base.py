"""Abstract base for all text generation providers."""

import asyncio
import logging
import os
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from config.config_loader import ModelConfig

logger = logging.getLogger(__name__)


class FunctionClass(str, Enum):
    """What a generation call is for; the gateway routes on it."""

    EXPERT_CHAT = "expert_chat"
    ANALYSIS_GENERATION = "analysis_generation"


DEFAULT_TIER = "gold"


@dataclass
class GenerationResult:
    text: str
    provider: str
    model: str
    latency_sec: float = 0.0
    input_tokens: int = 0
    output_tokens: int = 0


class ProviderError(Exception):
    """Raised when a provider call fails."""

    def __init__(self, provider_name: str, message: str) -> None:
        self.provider_name = provider_name
        super().__init__(f"[{provider_name}] {message}")


class AIProvider(ABC):
    """Abstract base for all text generation providers."""

    @abstractmethod
    def name(self) -> str:
        """Return the short provider name (e.g. 'gemini', 'claude')."""
        ...

    @abstractmethod
    def model_string(self) -> str:
        """Return the actual model identifier string."""
        ...

    @abstractmethod
    async def generate(
        self,
        prompt: str,
        function_class: FunctionClass = FunctionClass.EXPERT_CHAT,
        tier: str = DEFAULT_TIER,
    ) -> GenerationResult:
        """Generate text for the given prompt.

        Args:
            prompt: The full prompt text to send.
            function_class: What the call is for (role chat or analysis).
            tier: Subscription tier of the requesting user.

        Returns:
            GenerationResult with the text and usage metadata.

        Raises:
            ProviderError: On API failure, timeout, or empty response.
        """
        ...


class SdkProvider(AIProvider):
    """Shared plumbing for providers backed by a vendor SDK.

    Subclasses build their client in ``_make_client`` and perform the raw call in
    ``_complete``; timing, timeouts, error wrapping and usage logging live here.
    """

    label = "provider"

    def __init__(self, config: "ModelConfig") -> None:
        self._config = config
        api_key = os.environ.get(config.api_key_env, "").strip()
        if not api_key:
            raise ProviderError(config.name, f"Missing API key: {config.api_key_env}")
        self._client = self._make_client(api_key)

    @abstractmethod
    def _make_client(self, api_key: str) -> Any:
        ...

    @abstractmethod
    async def _complete(self, prompt: str) -> tuple[str, int, int]:
        """Send one prompt. Returns (text, input_tokens, output_tokens); text may be empty."""
        ...

    def name(self) -> str:
        return self._config.name

    def model_string(self) -> str:
        return self._config.model

    async def generate(
        self,
        prompt: str,
        function_class: FunctionClass = FunctionClass.EXPERT_CHAT,
        tier: str = DEFAULT_TIER,
    ) -> GenerationResult:
        cfg = self._config
        start = time.monotonic()
        try:
            text, input_tokens, output_tokens = await asyncio.wait_for(
                self._complete(prompt), timeout=cfg.timeout_sec
            )
        except TimeoutError as exc:
            raise ProviderError(cfg.name, f"Request timed out after {cfg.timeout_sec}s") from exc
        except ProviderError:
            raise
        except Exception as exc:
            raise ProviderError(cfg.name, f"API call failed: {exc}") from exc

        latency = time.monotonic() - start
        if not text:
            raise ProviderError(cfg.name, "Empty response")

        logger.info(
            "%s %s (%s, tier %s): %.2fs, %d/%d tokens",
            self.label,
            cfg.name,
            function_class.value,
            tier,
            latency,
            input_tokens,
            output_tokens,
        )
        return GenerationResult(
            text=text,
            provider=cfg.name,
            model=cfg.model,
            latency_sec=latency,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
        )
