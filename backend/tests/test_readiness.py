import asyncio
import time

import pytest

from services.fonts import CardFonts
from services.readiness import ReadinessGate, fonts_ready_gate


def test_resolved_signal_opens_gate():
    calls = []

    async def signal():
        calls.append(1)

    gate = ReadinessGate(signal=signal, timeout=1.0, fallback_delay=0)
    assert not gate.resolved
    assert asyncio.run(gate.wait()) is True
    assert gate.resolved
    assert calls == [1]


def test_hanging_signal_times_out_and_falls_back():
    async def never():
        await asyncio.sleep(60)

    gate = ReadinessGate(signal=never, timeout=0.05, fallback_delay=0.01)
    started = time.monotonic()
    assert asyncio.run(gate.wait()) is False
    assert time.monotonic() - started < 5


def test_failing_signal_does_not_raise():
    async def broken():
        raise RuntimeError("font service unavailable")

    gate = ReadinessGate(signal=broken, timeout=1.0, fallback_delay=0)
    assert asyncio.run(gate.wait()) is False


def test_missing_signal_uses_fallback_wait():
    gate = ReadinessGate(signal=None, timeout=1.0, fallback_delay=0)
    assert asyncio.run(gate.wait()) is False
    assert gate.resolved


def test_gate_resolves_once():
    calls = []

    async def signal():
        calls.append(1)

    gate = ReadinessGate(signal=signal, timeout=1.0, fallback_delay=0)

    async def wait_twice():
        return await gate.wait(), await gate.wait()

    assert asyncio.run(wait_twice()) == (True, True)
    assert calls == [1]


def test_signal_reporting_not_ready_closes_gate_false():
    async def not_usable():
        return False

    gate = ReadinessGate(signal=not_usable, timeout=1.0, fallback_delay=0)
    assert asyncio.run(gate.wait()) is False
    assert gate.resolved


def test_fonts_gate_not_ready_on_builtin_fallback(tmp_path):
    fonts = CardFonts(regular_path=str(tmp_path / "missing.ttf"), fallback_names=(), bold_fallback_names=())
    gate = fonts_ready_gate(fonts, timeout=5.0)
    assert asyncio.run(gate.wait()) is False
    assert fonts.ready
    assert not fonts.has_truetype
    # Still usable for Latin text.
    assert fonts.font(12).getlength("abc") > 0


def test_fonts_gate_ready_with_truetype_font():
    fonts = CardFonts()
    fonts.load()
    if not fonts.has_truetype:
        pytest.skip("no Thai-capable system font installed")
    fresh = CardFonts()
    assert asyncio.run(fonts_ready_gate(fresh, timeout=5.0).wait()) is True
