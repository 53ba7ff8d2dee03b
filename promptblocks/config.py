"""
Render configuration module.

Provides the RenderConfig dataclass controlling how render contexts are
built (RNG seed, fixed clock, tokenizer). Supports JSON serialization and
deserialization with validation, plus environment variable overrides.
"""

import json
import logging
import os
import random
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Optional, Sequence

from .constants import (
    DEFAULT_ENCODING,
    DEFAULT_LOG_LEVEL,
    DEFAULT_TOKENIZER,
    ENV_NOW,
    ENV_SEED,
    ENV_TOKENIZER,
)
from .context import HistoryEntry, RenderContext, Tokenizer, ToggleState, fixed_clock, system_clock
from .evaluator import parse_instant
from .tokenizer import HeuristicTokenizer, TiktokenTokenizer
from .types import BlockId

logger = logging.getLogger(__name__)


class ConfigError(Exception):
    """Raised when configuration parsing or validation fails."""

    def __init__(
        self,
        message: str,
        line: Optional[int] = None,
        column: Optional[int] = None,
    ):
        self.line = line
        self.column = column

        if line is not None and column is not None:
            full_message = f"{message} (line {line}, column {column})"
        elif line is not None:
            full_message = f"{message} (line {line})"
        else:
            full_message = message

        super().__init__(full_message)


# Current configuration version
CONFIG_VERSION = "1.0"

VALID_TOKENIZERS = frozenset({"heuristic", "tiktoken", "none"})
VALID_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})


@dataclass
class RenderConfig:
    """Configuration for building render contexts.

    Attributes:
        seed: Seed for the RNG behind ``random`` and ``roll``; None for
            an unseeded generator.
        now: ISO-8601 instant the clock is fixed at; None for the system clock.
        tokenizer: Tokenizer for ``token_size``: heuristic, tiktoken or none.
        encoding: tiktoken encoding name when ``tokenizer`` is tiktoken.
        log_level: Logging level name used by the command line.

    Example:
        config = RenderConfig(seed=42, now="2024-09-12T21:14:15.000Z")
        context = build_context(config, variables={"char": "John"})
    """
    seed: Optional[int] = None
    now: Optional[str] = None
    tokenizer: str = DEFAULT_TOKENIZER
    encoding: str = DEFAULT_ENCODING
    log_level: str = DEFAULT_LOG_LEVEL

    def to_dict(self) -> dict[str, Any]:
        """Convert the config to a dictionary for serialization.

        Returns:
            A dictionary representation of the config with version info.
        """
        return {
            "version": CONFIG_VERSION,
            "seed": self.seed,
            "now": self.now,
            "tokenizer": self.tokenizer,
            "encoding": self.encoding,
            "log_level": self.log_level,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "RenderConfig":
        """Create a RenderConfig from a dictionary.

        Args:
            data: Dictionary containing configuration fields.

        Returns:
            A new RenderConfig instance.

        Raises:
            ConfigError: If validation fails.
        """
        is_valid, errors = validate_config(data)
        if not is_valid:
            raise ConfigError(f"Configuration validation failed: {'; '.join(errors)}")
        return cls(
            seed=data.get("seed"),
            now=data.get("now"),
            tokenizer=data.get("tokenizer", DEFAULT_TOKENIZER),
            encoding=data.get("encoding", DEFAULT_ENCODING),
            log_level=data.get("log_level", DEFAULT_LOG_LEVEL).upper(),
        )

    @classmethod
    def from_json(cls, json_str: str) -> "RenderConfig":
        """Deserialize a RenderConfig from a JSON string.

        Raises:
            ConfigError: If the JSON is malformed or validation fails.
        """
        try:
            data = json.loads(json_str)
        except json.JSONDecodeError as e:
            raise ConfigError(
                f"Invalid JSON: {e.msg}",
                line=e.lineno,
                column=e.colno,
            ) from e
        return cls.from_dict(data)

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2)

    def with_env_overrides(self, environ: Optional[Mapping[str, str]] = None) -> "RenderConfig":
        """Return a copy with environment variable overrides applied.

        ``PROMPTBLOCKS_SEED``, ``PROMPTBLOCKS_NOW`` and
        ``PROMPTBLOCKS_TOKENIZER`` take precedence over file values.

        Raises:
            ConfigError: If an override has an invalid value.
        """
        environ = os.environ if environ is None else environ
        data = self.to_dict()

        seed = environ.get(ENV_SEED, "").strip()
        if seed:
            try:
                data["seed"] = int(seed)
            except ValueError:
                raise ConfigError(f"{ENV_SEED} must be an integer, got '{seed}'") from None

        now = environ.get(ENV_NOW, "").strip()
        if now:
            data["now"] = now

        tokenizer = environ.get(ENV_TOKENIZER, "").strip()
        if tokenizer:
            data["tokenizer"] = tokenizer.lower()

        return RenderConfig.from_dict(data)


def validate_config(data: Any) -> tuple[bool, list[str]]:
    """Validate a render configuration dictionary.

    Args:
        data: Dictionary containing configuration to validate.

    Returns:
        A tuple of (is_valid, errors) where is_valid is True if validation
        passed and errors is a list of error messages (empty if valid).

    Example:
        is_valid, errors = validate_config({"seed": "abc"})
        # (False, ["Field 'seed' must be an integer or null"])
    """
    errors: list[str] = []

    if not isinstance(data, Mapping):
        return False, ["Configuration must be a dictionary"]

    if "version" in data and not isinstance(data["version"], str):
        errors.append("Field 'version' must be a string")

    seed = data.get("seed")
    if seed is not None and (isinstance(seed, bool) or not isinstance(seed, int)):
        errors.append("Field 'seed' must be an integer or null")

    now = data.get("now")
    if now is not None:
        if not isinstance(now, str):
            errors.append("Field 'now' must be an ISO-8601 string or null")
        else:
            try:
                parse_instant(now)
            except ValueError:
                errors.append(f"Field 'now' is not a valid ISO-8601 instant: '{now}'")

    if "tokenizer" in data and data["tokenizer"] not in VALID_TOKENIZERS:
        valid = ", ".join(sorted(VALID_TOKENIZERS))
        errors.append(f"Field 'tokenizer' must be one of: {valid}")

    if "encoding" in data and not isinstance(data["encoding"], str):
        errors.append("Field 'encoding' must be a string")

    if "log_level" in data:
        level = data["log_level"]
        if not isinstance(level, str) or level.upper() not in VALID_LOG_LEVELS:
            valid = ", ".join(sorted(VALID_LOG_LEVELS))
            errors.append(f"Field 'log_level' must be one of: {valid}")

    return len(errors) == 0, errors


def load_config(path: Optional[Path] = None) -> RenderConfig:
    """Load configuration from a JSON file and apply environment overrides.

    Args:
        path: Path of the JSON configuration file. When None or missing,
            defaults are used.

    Returns:
        The loaded RenderConfig.

    Raises:
        ConfigError: If the file is malformed or invalid.
    """
    config = RenderConfig()
    if path is not None:
        if path.exists():
            config = RenderConfig.from_json(path.read_text(encoding="utf-8"))
            logger.debug(f"Loaded configuration from {path}")
        else:
            logger.warning(f"Configuration file {path} not found, using defaults")
    return config.with_env_overrides()


def create_tokenizer(config: RenderConfig) -> Optional[Tokenizer]:
    """Build the tokenizer selected by ``config.tokenizer``.

    Raises:
        ConfigError: If tiktoken is selected but not installed, or the
            encoding is unknown.
    """
    if config.tokenizer == "none":
        return None
    if config.tokenizer == "tiktoken":
        try:
            return TiktokenTokenizer(config.encoding)
        except ImportError as e:
            raise ConfigError(
                "Tokenizer 'tiktoken' requires the tiktoken extra: "
                "pip install 'promptblocks[tiktoken]'"
            ) from e
        except ValueError as e:
            raise ConfigError(f"Unknown tiktoken encoding '{config.encoding}': {e}") from e
    return HeuristicTokenizer()


def build_context(
    config: RenderConfig,
    variables: Optional[Mapping[str, Any]] = None,
    history: Optional[Sequence[HistoryEntry]] = None,
    toggle: Optional[ToggleState] = None,
) -> RenderContext:
    """Build a RenderContext with the capabilities ``config`` selects.

    Args:
        config: The RenderConfig to apply.
        variables: Template variables.
        history: Conversation history, oldest first.
        toggle: Toggle state; defaults to every toggle off.

    Returns:
        A RenderContext with a seeded RNG and fixed clock when configured.
    """
    clock = fixed_clock(parse_instant(config.now)) if config.now else system_clock
    return RenderContext(
        variables=variables or {},
        history=history or (),
        toggle=toggle or ToggleState(),
        tokenizer=create_tokenizer(config),
        clock=clock,
        rng=random.Random(config.seed),
    )


def toggle_state_from_ids(
    enabled_ids: Sequence[str],
    values: Optional[Mapping[str, Any]] = None,
) -> ToggleState:
    """Build a ToggleState switching on the given block ids."""
    return ToggleState(
        enabled={BlockId(block_id): True for block_id in enabled_ids},
        values={BlockId(block_id): value for block_id, value in (values or {}).items()},
    )
