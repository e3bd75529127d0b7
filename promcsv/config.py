"""
promcsv configuration.

Settings are layered: dataclass defaults, then an optional YAML file, then the
environment (a ``.env`` file is honoured), then command line flags that were
given explicitly.
"""

import argparse
import logging
import os
import re
from dataclasses import dataclass, field, fields
from datetime import timedelta
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml
from dotenv import load_dotenv

from .errors import ConfigurationError
from .formatting import DEFAULT_DATE_FORMAT

logger = logging.getLogger("promcsv")

DEFAULT_CONFIG_PATH = Path("promcsv.yml")
URL_ENV_VAR = "PROMETHEUS_URL"

# YAML keys accepted under their flag spelling
_KEY_ALIASES = {"dateFormat": "date_format", "log-level": "log_level"}

_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}
_BARE_NUMBER = re.compile(r"\d+(?:\.\d*)?|\.\d+")
_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")


def parse_duration(text: Any) -> timedelta:
    """
    Parse a duration such as "5m", "1h30m", "1.5s" or "0".

    A bare number is taken as seconds.

    Raises:
        ValueError: If the text is not a valid duration
    """
    if isinstance(text, timedelta):
        return text
    if isinstance(text, (int, float)) and not isinstance(text, bool):
        return timedelta(seconds=text)

    s = str(text).strip()
    sign = 1
    if s and s[0] in "+-":
        sign = -1 if s[0] == "-" else 1
        s = s[1:]
    if not s:
        raise ValueError(f"invalid duration {text!r}")

    if _BARE_NUMBER.fullmatch(s):
        return timedelta(seconds=sign * float(s))

    seconds = 0.0
    pos = 0
    while pos < len(s):
        m = _DURATION_PART.match(s, pos)
        if not m:
            raise ValueError(f"invalid duration {text!r}")
        seconds += float(m.group(1)) * _DURATION_UNITS[m.group(2)]
        pos = m.end()
    return timedelta(seconds=sign * seconds)


def _duration_arg(text: str) -> timedelta:
    try:
        return parse_duration(text)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e))


def _as_str(value: Any) -> str:
    return "" if value is None else str(value)


@dataclass
class CliConfig:
    """promcsv configuration with defaults"""
    url: str = "http://localhost:9090/"
    query: str = "up"
    start: int = 0
    end: int = 0
    step: timedelta = field(default_factory=timedelta)
    delim: str = ";"
    date_format: str = DEFAULT_DATE_FORMAT
    timeout: Optional[float] = None
    insecure: bool = False
    log_level: str = "WARNING"

    def __post_init__(self):
        self.step = parse_duration(self.step)
        self.start = int(self.start or 0)
        self.end = int(self.end or 0)
        if self.timeout is not None:
            self.timeout = float(self.timeout)
        # YAML may hand over numbers or null for string settings
        self.url = _as_str(self.url)
        self.query = _as_str(self.query)
        self.delim = _as_str(self.delim)
        self.date_format = _as_str(self.date_format)
        self.log_level = _as_str(self.log_level)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CliConfig":
        """Create config from a dictionary, ignoring unknown keys"""
        known_fields = {f.name for f in fields(cls)}
        filtered: Dict[str, Any] = {}
        for key, value in data.items():
            key = _KEY_ALIASES.get(key, key)
            if key in known_fields:
                filtered[key] = value
            else:
                logger.debug("ignoring unknown config key: %s", key)
        return cls(**filtered)

    @classmethod
    def from_file(cls, config_path: Path) -> "CliConfig":
        """Load configuration from YAML file"""
        if not config_path.exists():
            logger.debug("config file not found: %s, using defaults", config_path)
            return cls()

        try:
            with open(config_path, "r") as f:
                data = yaml.safe_load(f) or {}
            if not isinstance(data, dict):
                raise ValueError("top level must be a mapping")
            config = cls.from_dict(data)
            logger.debug("loaded config from %s: %s", config_path, data)
            return config
        except (OSError, yaml.YAMLError, TypeError, ValueError) as e:
            logger.warning("failed to load config from %s: %s, using defaults", config_path, e)
            return cls()

    def override_with_env(self, environ: Optional[Mapping[str, str]] = None) -> "CliConfig":
        """Override the backend URL from PROMETHEUS_URL if set"""
        if environ is None:
            load_dotenv(Path.cwd() / ".env")
            environ = os.environ
        url = environ.get(URL_ENV_VAR)
        if url:
            self.url = url
        return self

    def override_with_args(self, args: argparse.Namespace) -> "CliConfig":
        """Override config with command line arguments if provided"""
        # Only override if explicitly provided - preserves config file values
        self.url = args.url if args.url is not None else self.url
        self.query = args.query if args.query is not None else self.query
        self.start = args.start if args.start is not None else self.start
        self.end = args.end if args.end is not None else self.end
        self.step = args.step if args.step is not None else self.step
        self.delim = args.delim if args.delim is not None else self.delim
        self.date_format = args.date_format if args.date_format is not None else self.date_format
        self.timeout = args.timeout if args.timeout is not None else self.timeout
        self.insecure = args.insecure if args.insecure is not None else self.insecure
        self.log_level = args.log_level if args.log_level is not None else self.log_level
        return self

    @property
    def delimiter(self) -> str:
        """Field delimiter: the first character of ``delim``"""
        return self.delim[0]

    def validate(self) -> None:
        """
        Check that the configuration is usable.

        Raises:
            ConfigurationError: On the first missing or invalid setting
        """
        if not self.query:
            raise ConfigurationError("missing query")
        if not self.url:
            raise ConfigurationError("missing prometheus url")
        if not self.delim:
            raise ConfigurationError("missing delimiter")
        if self.delimiter in ('"', "\r", "\n"):
            raise ConfigurationError(f"invalid delimiter {self.delimiter!r}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="promcsv",
        description="Query Prometheus and print the result as CSV",
        allow_abbrev=False,
    )
    parser.add_argument("-c", "--config", type=Path, default=DEFAULT_CONFIG_PATH,
                        help="YAML configuration file (default: %(default)s)")
    parser.add_argument("-url", "--url",
                        help="prometheus url (default: http://localhost:9090/)")
    parser.add_argument("-query", "--query",
                        help="prometheus query (default: up)")
    parser.add_argument("-start", "--start", type=int,
                        help="query range - start, unix seconds (default: instant query)")
    parser.add_argument("-end", "--end", type=int,
                        help="query range - end, unix seconds (default: now)")
    parser.add_argument("-step", "--step", type=_duration_arg,
                        help="query range - step, e.g. 30s, 5m, 1h (default: 5m)")
    parser.add_argument("-delim", "--delim",
                        help="CSV field delimiter (default: ;)")
    parser.add_argument("-dateFormat", "--dateFormat", "--date-format", dest="date_format",
                        help="timestamp layout, '-' for raw timestamps (default: 2006-01-02 15:04:05)")
    parser.add_argument("--timeout", type=float,
                        help="HTTP timeout in seconds (default: none)")
    parser.add_argument("--insecure", action="store_true", default=None,
                        help="skip TLS certificate verification")
    parser.add_argument("--log-level", dest="log_level",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"], help="logging level")
    return parser


def load_config(args: argparse.Namespace, environ: Optional[Mapping[str, str]] = None) -> CliConfig:
    """Load config: YAML first, then environment, then CLI overrides"""
    return CliConfig.from_file(args.config).override_with_env(environ).override_with_args(args)
