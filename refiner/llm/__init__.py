"""LLM access package.

Module split:
    - `provider_config`: explicit provider and runtime configuration.
    - `parameters`: deterministic generation-parameter lookup.
    - `gateway`: streaming transport and fragment stream.
    - `service`: validated request -> prompt + parameters -> stream.
"""
