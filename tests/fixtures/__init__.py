"""Shared pytest fixtures and helpers for provider tests."""

from .core import *  # noqa: F401,F403
from .host import *  # noqa: F401,F403
