"""Provider/runtime configuration for the LLM layer.

Architectural role:
    Holds everything the gateway and HTTP app need from the environment in one
    explicit, immutable object. It is built once at process start
    (`ProviderConfig.from_env()`) and passed into `CompletionGateway` and
    `create_app`; nothing reads these settings from module globals.

Relevant environment variables:
    - `OPENAI_API_KEY` (or key file `config/openai.key`)
    - `OPENAI_BASE_URL`
    - `REFINER_ENV` (`production` | `development`)
    - `REFINER_CONNECT_TIMEOUT`, `REFINER_READ_TIMEOUT`, `REFINER_STREAM_DEADLINE`
    - `REFINER_ALLOW_UNKNOWN_MODEL`
    - `REFINER_LOG_LEVEL`
    - `DEBUG`

Failure behavior:
    A missing key is represented as `None`; the gateway raises
    `MissingApiKeyError` on first use rather than failing at startup.
"""

import os
from dataclasses import dataclass
from typing import Optional

import httpx
from dotenv import load_dotenv


DEFAULT_BASE_URL = "https://api.openai.com/v1"
DEFAULT_KEY_FILE = "config/openai.key"


def load_key(path: Optional[str]) -> Optional[str]:
    """Load API key from environment override or key file.

    Resolution order:
        1. Environment variable inferred from file stem (for example
           `config/openai.key` -> `OPENAI_API_KEY`).
        2. Raw file contents at `path`.

    Edge cases:
        - `None` path returns `None`.
        - Missing or empty file returns `None`.
    """
    if not path:
        return None
    key_name = os.path.splitext(os.path.basename(path))[0].upper() + "_API_KEY"
    env_value = os.getenv(key_name, "").strip()
    if env_value:
        return env_value
    if not os.path.exists(path):
        return None
    with open(path, "r", encoding="utf-8") as f:
        return f.read().strip() or None


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class ProviderConfig:
    """Immutable provider and runtime settings.

    Timeouts:
        `connect_timeout` bounds connection setup, `read_timeout` bounds the
        wait for each chunk, `stream_deadline` bounds a whole stream.
    """

    api_key: Optional[str] = None
    base_url: str = DEFAULT_BASE_URL
    environment: str = "production"
    connect_timeout: float = 10.0
    read_timeout: float = 60.0
    stream_deadline: float = 300.0
    allow_unknown_model: bool = False
    log_level: str = "INFO"
    debug: bool = False

    @classmethod
    def from_env(cls, key_file: str = DEFAULT_KEY_FILE) -> "ProviderConfig":
        """Build configuration from `.env` and the process environment."""
        load_dotenv()
        return cls(
            api_key=load_key(key_file),
            base_url=os.getenv("OPENAI_BASE_URL", DEFAULT_BASE_URL).strip().rstrip("/"),
            environment=os.getenv("REFINER_ENV", "production").strip().lower(),
            connect_timeout=float(os.getenv("REFINER_CONNECT_TIMEOUT", "10")),
            read_timeout=float(os.getenv("REFINER_READ_TIMEOUT", "60")),
            stream_deadline=float(os.getenv("REFINER_STREAM_DEADLINE", "300")),
            allow_unknown_model=_env_flag("REFINER_ALLOW_UNKNOWN_MODEL"),
            log_level=os.getenv("REFINER_LOG_LEVEL", "INFO").strip().upper(),
            debug=_env_flag("DEBUG"),
        )

    @property
    def development(self) -> bool:
        return self.environment == "development"

    @property
    def completions_url(self) -> str:
        return f"{self.base_url.rstrip('/')}/chat/completions"

    def timeout(self) -> httpx.Timeout:
        """httpx timeout policy derived from the configured bounds."""
        return httpx.Timeout(
            self.read_timeout,
            connect=self.connect_timeout,
            read=self.read_timeout,
        )
