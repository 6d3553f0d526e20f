"""Tests for WriteStamper."""

from anchor_registry._internal.clock import SystemClock, WriteStamper


def test_follows_a_moving_clock(clock):
    stamper = WriteStamper(clock)
    first = stamper.stamp()
    clock.advance(5)
    assert stamper.stamp() == clock.now()
    assert first < clock.now()


def test_bumps_repeated_ticks(clock):
    stamper = WriteStamper(clock)
    stamps = [stamper.stamp() for _ in range(3)]
    assert stamps == sorted(set(stamps))


def test_never_goes_backwards(clock):
    stamper = WriteStamper(clock)
    first = stamper.stamp()
    clock.advance(-10)
    assert stamper.stamp() > first


def test_defaults_to_system_clock():
    assert WriteStamper().stamp().tzinfo is not None
    assert SystemClock().now().tzinfo is not None
