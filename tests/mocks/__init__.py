"""Test doubles shared across the test suite."""

from .mock_providers import FakeProvider, make_result_set

__all__ = ["FakeProvider", "make_result_set"]
