"""
Test Fixtures Package

Shared test utilities and helpers for consistent testing across all modules.
"""

from .clock import FakeClock
from .resource_factory import ResourceTestFactory, ScriptedFetch

__all__ = ["FakeClock", "ResourceTestFactory", "ScriptedFetch"]
