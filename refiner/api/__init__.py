"""Refiner API adapter package.

Architectural role:
- Defines the external interaction boundary for HTTP and CLI interfaces.
- Performs transport-level validation and response shaping.
- Delegates prompt preparation and provider calls to `refiner.llm`.
"""
