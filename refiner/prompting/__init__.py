"""Prompting package.

Deterministic prompt-construction helpers. This package does not validate
requests, choose generation parameters, or call the provider.
"""

from refiner.prompting.prompt_builder import (
    build_messages,
    build_rewrite_messages,
    build_summary_messages,
)

__all__ = ["build_messages", "build_rewrite_messages", "build_summary_messages"]
