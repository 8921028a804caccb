"""Startup connectivity checks: one short generation per provider, run concurrently."""

import asyncio
import logging
import time
from dataclasses import dataclass

from roundtable.providers.base import AIProvider, FunctionClass

logger = logging.getLogger(__name__)

_PING_PROMPT = "Reply with the word OK only."
_TIMEOUT_SEC = 15.0


@dataclass
class HealthStatus:
    name: str
    ok: bool
    error: str = ""
    latency_sec: float = 0.0

    @property
    def short_error(self) -> str:
        return self.error.splitlines()[0][:120] if self.error else "unknown error"


async def _ping(name: str, provider: AIProvider) -> HealthStatus:
    start = time.monotonic()
    try:
        await asyncio.wait_for(
            provider.generate(_PING_PROMPT, FunctionClass.EXPERT_CHAT),
            timeout=_TIMEOUT_SEC,
        )
    except Exception as exc:
        logger.debug("Health check for %s failed: %s", name, exc)
        return HealthStatus(name, False, str(exc) or type(exc).__name__)
    return HealthStatus(name, True, latency_sec=time.monotonic() - start)


async def run_health_checks(providers: dict[str, AIProvider]) -> dict[str, HealthStatus]:
    """Ping every provider; the result is keyed by provider name, in name order."""
    statuses = await asyncio.gather(*(_ping(n, providers[n]) for n in sorted(providers)))
    return {s.name: s for s in statuses}
