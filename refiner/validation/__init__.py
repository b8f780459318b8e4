"""Request validation package.

Runs before any prompt assembly or provider call; every rejection is a
`RequestValidationError` carrying a client-input taxonomy code.
"""

from refiner.validation.request_validator import parse_body, validate_request

__all__ = ["parse_body", "validate_request"]
