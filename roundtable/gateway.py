"""Text generation gateway: routes calls to a configured provider and records usage."""

import logging
from collections.abc import Callable

from config.config_loader import RoutingConfig
from roundtable.providers.base import DEFAULT_TIER, AIProvider, FunctionClass, GenerationResult, ProviderError

logger = logging.getLogger(__name__)

UsageRecorder = Callable[[str, int, int], None]


class ProviderRouter(AIProvider):
    """Picks a provider per function class and tier. Never retries."""

    def __init__(
        self,
        providers: dict[str, AIProvider],
        routing: RoutingConfig,
        usage_recorder: UsageRecorder | None = None,
        user_id: str = "anonymous",
    ) -> None:
        self._providers = providers
        self._routing = routing
        self._usage_recorder = usage_recorder
        self._user_id = user_id

    def name(self) -> str:
        return "router"

    def model_string(self) -> str:
        return ",".join(p.model_string() for p in self._providers.values())

    def select(self, function_class: FunctionClass, tier: str) -> AIProvider:
        """First routed provider that is available and allowed for the tier."""
        preferred = self._routing.routes.get(function_class.value) or list(self._providers)
        allowed = self._routing.tiers.get(tier)
        for provider_name in preferred:
            if provider_name not in self._providers:
                continue
            if allowed is not None and provider_name not in allowed:
                continue
            return self._providers[provider_name]
        raise ProviderError(
            "router",
            f"No provider available for {function_class.value} on tier '{tier}'",
        )

    async def generate(
        self,
        prompt: str,
        function_class: FunctionClass = FunctionClass.EXPERT_CHAT,
        tier: str = DEFAULT_TIER,
    ) -> GenerationResult:
        provider = self.select(function_class, tier)
        logger.debug("Routing %s call (tier %s) to %s", function_class.value, tier, provider.name())
        result = await provider.generate(prompt, function_class, tier)
        self._record_usage(result)
        return result

    def _record_usage(self, result: GenerationResult) -> None:
        if self._usage_recorder is None:
            return
        try:
            self._usage_recorder(self._user_id, result.input_tokens, result.output_tokens)
        except Exception as exc:
            logger.warning("Usage recording failed for %s: %s", self._user_id, exc)
