"""Test helpers."""

from .fake_provider import FakeProvider, GatedProvider, make_recipients, seed_recipients

__all__ = ["FakeProvider", "GatedProvider", "make_recipients", "seed_recipients"]
