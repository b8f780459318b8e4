"""Refiner: streaming summarize/rewrite service.

Architectural role:
- `core`: option catalog, data contracts, error taxonomy.
- `validation`: inbound request checks.
- `prompting`: deterministic prompt assembly.
- `llm`: provider configuration, generation parameters, streaming gateway.
- `api`: HTTP and terminal interfaces.
- `client`: stream consumer, HTTP client, local history.
"""

__version__ = "0.1.0"
