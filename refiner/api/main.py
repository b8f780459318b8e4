"""
Server entrypoint for the Refiner HTTP API.

Reads `REFINER_HOST` / `REFINER_PORT`, builds the app through
`refiner.api.http_api.create_app`, and serves it with uvicorn.
"""

import os

import uvicorn

from refiner.api.http_api import create_app


def main():
    host = os.getenv("REFINER_HOST", "127.0.0.1")
    port = int(os.getenv("REFINER_PORT", "8000"))
    uvicorn.run(create_app(), host=host, port=port)


if __name__ == "__main__":
    main()
