import json
import os

from pydantic import ValidationError

from contracts.errors import ConfigError
from contracts.settings import Settings


class Config:
    """
    Configuration class for environment variables and default settings.
    """

    CONFIG_PATH = os.environ.get("STATUSOK_CONFIG", "config.json")
    LOG_FILE = os.environ.get("LOG_FILE")

    # Liveness endpoint port, used when the config document leaves "port" at 0
    DEFAULT_PORT = int(os.environ.get("STATUSOK_PORT", "7321"))

    DEFAULT_CONCURRENCY = 1
    DEFAULT_RESPONSE_CODE = 200
    DEFAULT_CHECK_EVERY = "300s"
    DEFAULT_TIMEOUT = "10s"
    DEFAULT_WINDOW_SIZE = 3

    DEFAULT_USER_AGENT = os.environ.get(
        "STATUSOK_USER_AGENT", "StatusOk/Monitoring v1.0"
    )

    # Max characters of a failed response body kept on the error record
    RESPONSE_SNIPPET_LIMIT = int(os.environ.get("RESPONSE_SNIPPET_LIMIT", "1024"))

    # Upper bound on a single backend write/notify call; 0 disables the bound
    BACKEND_CALL_TIMEOUT = float(os.environ.get("BACKEND_CALL_TIMEOUT", "30"))

    # Exit code for fatal startup problems
    FATAL_EXIT_CODE = 3


def load_settings(path: str) -> Settings:
    """
    Read the JSON configuration document at ``path``.

    Raises:
        ConfigError: If the file cannot be read or does not match the schema.
    """
    try:
        with open(path, "r") as f:
            data = json.load(f)
    except OSError as e:
        raise ConfigError([f"Error opening config file: {e}"]) from e
    except json.JSONDecodeError as e:
        raise ConfigError(
            [f"Error parsing config file. Please check format of the file! Parse Error: {e}"]
        ) from e

    try:
        return Settings.model_validate(data)
    except ValidationError as e:
        raise ConfigError(
            [f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()]
        ) from e
