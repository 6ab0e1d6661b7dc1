"""
Capture readiness gate.

A one-shot barrier awaited before the first rasterization of a run. It wraps
an optional readiness signal (usually "fonts are loaded") and bounds the wait:
a signal that times out or fails degrades to a short best-effort sleep.
"""
import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

from services.fonts import CardFonts
from settings import settings

logger = logging.getLogger(__name__)

ReadinessSignal = Callable[[], Awaitable[Any]]


class ReadinessGate:
    def __init__(
        self,
        signal: Optional[ReadinessSignal] = None,
        timeout: Optional[float] = None,
        fallback_delay: Optional[float] = None,
    ):
        self.signal = signal
        self.timeout = settings.CARD_READINESS_TIMEOUT_SEC if timeout is None else timeout
        self.fallback_delay = settings.CARD_READINESS_FALLBACK_SEC if fallback_delay is None else fallback_delay
        self._result: Optional[bool] = None

    @property
    def resolved(self) -> bool:
        return self._result is not None

    async def wait(self) -> bool:
        """
        Resolve the gate.

        Returns True when the signal confirmed readiness, False when the gate
        fell back to the best-effort wait. A signal that completes with an
        explicit False reports "resolved, but not usable" and also yields
        False. Never raises and never waits longer than timeout +
        fallback_delay.
        """
        if self._result is not None:
            return self._result
        if self.signal is None:
            logger.debug("[readiness] no signal, waiting %.2fs", self.fallback_delay)
            await asyncio.sleep(self.fallback_delay)
            self._result = False
            return self._result
        try:
            outcome = await asyncio.wait_for(self.signal(), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.warning("[readiness] signal did not resolve within %.1fs, continuing", self.timeout)
            await asyncio.sleep(self.fallback_delay)
            self._result = False
        except Exception:
            logger.warning("[readiness] signal failed, continuing after fallback wait", exc_info=True)
            await asyncio.sleep(self.fallback_delay)
            self._result = False
        else:
            self._result = outcome is not False
            if not self._result:
                logger.warning("[readiness] signal reported not ready, continuing")
        return self._result


def fonts_ready_gate(fonts: CardFonts, timeout: Optional[float] = None) -> ReadinessGate:
    """
    Gate that resolves once the card fonts are loaded.

    Reports not-ready when only Pillow's builtin font is available, since
    that font cannot draw Thai text.
    """

    async def _load_fonts() -> bool:
        loop = asyncio.get_running_loop()
        loaded = await loop.run_in_executor(None, fonts.load)
        return loaded.has_truetype

    return ReadinessGate(signal=_load_fonts, timeout=timeout)
