import itertools
import logging
import re
from typing import Iterable, List

import httpx

from config.config import Config
from contracts.errors import ConfigError
from contracts.probe import ProbeDefinition
from contracts.settings import ProbeConfig

logger = logging.getLogger(__name__)

_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h)")
_UNIT_SECONDS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "μs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}


def parse_duration(value: str) -> float:
    """
    Parse a duration such as "300s", "1m30s", "1.5h" or "250ms" into seconds.

    Raises:
        ValueError: If the string is not a valid duration.
    """
    text = value.strip()
    sign = 1.0
    if text[:1] in ("+", "-"):
        sign = -1.0 if text[0] == "-" else 1.0
        text = text[1:]
    if text == "0":
        return 0.0
    if not text:
        raise ValueError(f"invalid duration {value!r}")

    total = 0.0
    pos = 0
    while pos < len(text):
        match = _DURATION_PART.match(text, pos)
        if not match:
            raise ValueError(f"invalid duration {value!r}")
        total += float(match.group(1)) * _UNIT_SECONDS[match.group(2)]
        pos = match.end()
    return sign * total


def format_duration(seconds: float) -> str:
    seconds = int(round(seconds))
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


class ProbeValidator:
    """
    Turns raw probe entries from the config document into validated
    ProbeDefinitions with process-unique identifiers.
    """

    def __init__(self, default_window_size: int = 0):
        self.default_window_size = default_window_size or Config.DEFAULT_WINDOW_SIZE
        self._ids = itertools.count(1)

    def validate(self, config: ProbeConfig) -> ProbeDefinition:
        """
        Validate one probe entry, fill in defaults and assign its id.

        Raises:
            ConfigError: If the entry is invalid.
        """
        if not config.url:
            raise ConfigError(["Invalid Url"])
        try:
            url = httpx.URL(config.url)
        except (httpx.InvalidURL, TypeError) as e:
            raise ConfigError([f"Invalid Url {config.url!r}: {e}"]) from e
        if url.scheme not in ("http", "https") or not url.host:
            raise ConfigError([f"Invalid Url {config.url!r}"])

        if not config.request_type:
            raise ConfigError(["RequestType cannot be empty"])

        if config.response_time <= 0:
            raise ConfigError(["ResponseTime cannot be empty"])

        response_code = config.response_code or Config.DEFAULT_RESPONSE_CODE

        check_every = config.check_every or Config.DEFAULT_CHECK_EVERY
        try:
            interval = parse_duration(check_every)
        except ValueError as e:
            raise ConfigError([f"CheckEvery format is invalid {e}"]) from e
        if interval <= 0:
            raise ConfigError([f"CheckEvery must be positive, got {check_every!r}"])

        timeout_text = config.timeout or Config.DEFAULT_TIMEOUT
        try:
            timeout = parse_duration(timeout_text)
        except ValueError as e:
            raise ConfigError([f"Timeout format is invalid {e}"]) from e
        if timeout <= 0:
            raise ConfigError([f"Timeout must be positive, got {timeout_text!r}"])

        window_size = config.median_response_count or self.default_window_size
        if window_size < 1:
            raise ConfigError([f"MedianResponseCount must be at least 1, got {window_size}"])

        definition = ProbeDefinition(
            id=next(self._ids),
            url=config.url,
            method=config.request_type.upper(),
            headers=config.headers or {},
            form_params=config.form_params or {},
            url_params=config.url_params or {},
            expected_status=response_code,
            expected_latency_ms=config.response_time,
            interval=interval,
            timeout=timeout,
            window_size=window_size,
        )
        logger.info(
            f"Probe {definition.id} {definition.method} {definition.url}: "
            f"check every {format_duration(interval)}, timeout {format_duration(timeout)}"
        )
        return definition

    def validate_all(self, configs: Iterable[ProbeConfig]) -> List[ProbeDefinition]:
        """
        Validate every probe entry, collecting all problems.

        Raises:
            ConfigError: Listing every invalid entry.
        """
        definitions = []
        problems = []
        for index, config in enumerate(configs):
            try:
                definitions.append(self.validate(config))
            except ConfigError as e:
                for problem in e.problems:
                    problems.append(f"Request #{index} ({config.url}): {problem}")
        if problems:
            raise ConfigError(problems)
        return definitions
