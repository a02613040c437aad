"""
Configuration management for prompt-manager.

Provides YAML-based configuration with CLI overrides,
configuration hierarchy (CLI > YAML > Defaults), and validation.
"""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from prompt_manager.errors import ConfigurationError

DEFAULT_CONFIG_FILE = "~/.prompt_manager/config.yaml"

# [UPPERCASE_WITH_UNDERSCORES]
DEFAULT_KEYWORD_PATTERN = r"\[[A-Z_]+\]"

# $NAME or ${NAME}; the first non-empty group is the variable name
DEFAULT_ENV_PATTERN = r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}|\$([A-Za-z_][A-Za-z0-9_]*)"


def _compile(pattern: str, what: str) -> re.Pattern[str]:
    try:
        return re.compile(pattern)
    except re.error as e:
        raise ValueError(f"Invalid {what} {pattern!r}: {e}") from e


class RenderOptions(BaseModel):
    """Rendering configuration.

    Immutable so one value can be shared by concurrent renders. Use
    with_overrides() to derive a variant for a single call.
    """

    model_config = ConfigDict(frozen=True)

    keyword_pattern: str = Field(
        default=DEFAULT_KEYWORD_PATTERN,
        description="Regular expression matching a placeholder token",
    )
    directive_marker: str = Field(
        default="//",
        description="Prefix that introduces a directive line",
    )
    end_marker: str = Field(
        default="__END__",
        description="Line that terminates processed content",
    )
    comment_marker: str = Field(
        default="#",
        description="Prefix of comment header lines",
    )
    strip_comments: bool = Field(
        default=True,
        description="Drop the leading comment header before rendering",
    )
    evaluate_expressions: bool = Field(
        default=False,
        description="Evaluate embedded expression blocks",
    )
    expression_open: str = Field(
        default="<%=",
        description="Opening delimiter of an expression block",
    )
    expression_close: str = Field(
        default="%>",
        description="Closing delimiter of an expression block",
    )
    substitute_env_vars: bool = Field(
        default=False,
        description="Replace environment variable references",
    )
    env_pattern: str = Field(
        default=DEFAULT_ENV_PATTERN,
        description="Regular expression matching an environment reference",
    )
    on_unset_env: Literal["empty", "keep", "error"] = Field(
        default="empty",
        description="What to do with references to unset environment variables",
    )
    missing_parameters: Literal["leave", "error"] = Field(
        default="leave",
        description="Leave unresolved tokens in place, or fail the render",
    )
    trim_included: bool = Field(
        default=True,
        description="Strip trailing newlines from included text before splicing",
    )
    strict_directives: bool = Field(
        default=False,
        description="Reject marker lines with an unknown verb instead of keeping them as text",
    )
    max_depth: int = Field(
        default=32,
        description="Maximum directive nesting depth",
    )

    @field_validator("keyword_pattern")
    @classmethod
    def validate_keyword_pattern(cls, v: str) -> str:
        """Validate the keyword pattern compiles and cannot match empty text."""
        if _compile(v, "keyword pattern").fullmatch("") is not None:
            raise ValueError(f"Keyword pattern {v!r} matches the empty string")
        return v

    @field_validator("env_pattern")
    @classmethod
    def validate_env_pattern(cls, v: str) -> str:
        """Validate the environment pattern compiles and captures a name."""
        if _compile(v, "environment pattern").groups < 1:
            raise ValueError(f"Environment pattern {v!r} has no capture group")
        return v

    @field_validator("directive_marker", "end_marker", "expression_open", "expression_close")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        """Validate markers are non-empty."""
        if not v.strip():
            raise ValueError("Marker must not be blank")
        return v

    @field_validator("max_depth")
    @classmethod
    def validate_max_depth(cls, v: int) -> int:
        """Validate max_depth is positive."""
        if v < 1:
            raise ValueError("max_depth must be at least 1")
        return v

    @model_validator(mode="after")
    def validate_delimiters(self) -> RenderOptions:
        """Validate expression delimiters can be told apart."""
        if self.expression_open == self.expression_close:
            raise ValueError("expression_open and expression_close must differ")
        return self

    @property
    def keyword_regex(self) -> re.Pattern[str]:
        return re.compile(self.keyword_pattern)

    @property
    def env_regex(self) -> re.Pattern[str]:
        return re.compile(self.env_pattern)

    def with_overrides(self, **overrides: Any) -> RenderOptions:
        """Return a copy with the given fields replaced.

        Raises:
            ConfigurationError: If the resulting options are invalid
        """
        if not overrides:
            return self
        try:
            return RenderOptions(**{**self.model_dump(), **overrides})
        except ValidationError as e:
            raise ConfigurationError(f"Invalid render options: {e}") from e


class StorageSettings(BaseModel):
    """Storage backend configuration."""

    backend: Literal["filesystem", "sqlite", "memory"] = Field(
        default="filesystem",
        description="Storage backend used by the loader",
    )
    prompts_dir: str = Field(
        default="~/.prompts",
        description="Directory holding prompt and parameter files",
    )
    prompt_extension: str = Field(
        default=".txt",
        description="File extension of prompt text files",
    )
    params_extension: str = Field(
        default=".json",
        description="File extension of parameter files",
    )
    database_path: str = Field(
        default="~/.prompt_manager/prompts.db",
        description="SQLite database path for the sqlite backend",
    )

    @field_validator("prompt_extension", "params_extension")
    @classmethod
    def validate_extension(cls, v: str) -> str:
        """Validate extensions start with a dot."""
        if not v.startswith(".") or len(v) < 2:
            raise ValueError(f"Invalid extension: {v!r}")
        return v

    @model_validator(mode="after")
    def validate_distinct_extensions(self) -> StorageSettings:
        """Validate prompt and parameter files can be told apart."""
        if self.prompt_extension == self.params_extension:
            raise ValueError("prompt_extension and params_extension must differ")
        return self


class LoggingSettings(BaseModel):
    """Logging configuration."""

    level: Literal["debug", "info", "warning", "error"] = Field(
        default="warning",
        description="Log level",
    )


class AppConfig(BaseModel):
    """Top-level prompt-manager configuration."""

    render: RenderOptions = Field(default_factory=RenderOptions)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


def load_yaml(config_file: str | Path) -> dict[str, Any]:
    """
    Read a YAML (or JSON) configuration file.

    A missing or empty file is an empty mapping.

    Raises:
        ConfigurationError: If the extension is unsupported, the content does
            not parse, or the top level is not a mapping
    """
    config_path = Path(config_file).expanduser()
    if not config_path.exists():
        return {}

    file_ext = config_path.suffix.lower()
    if file_ext not in (".yaml", ".yml", ".json"):
        raise ConfigurationError(
            f"Config file must have .yaml, .yml, or .json extension, got: {file_ext}\n"
            f"File: {config_path}"
        )

    content = config_path.read_text(encoding="utf-8")
    try:
        if file_ext == ".json":
            data = json.loads(content) if content.strip() else None
        else:
            data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in config file: {e}") from e
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON in config file: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file must contain a mapping: {config_path}")
    return data


def apply_cli_overrides(
    config_dict: dict[str, Any],
    cli_overrides: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """
    Merge dotted overrides ("render.max_depth": 4) into a config mapping.

    The input mapping is updated in place and returned.

    Raises:
        ConfigurationError: If an override descends into a non-mapping value
    """
    for key, value in (cli_overrides or {}).items():
        *sections, field = key.split(".")
        target = config_dict
        for section in sections:
            target = target.setdefault(section, {})
            if not isinstance(target, dict):
                raise ConfigurationError(f"Cannot override {key}: {section} is not a section")
        target[field] = value
    return config_dict


def load_config(
    config_file: str | None = None,
    cli_overrides: dict[str, Any] | None = None,
) -> AppConfig:
    """
    Build the configuration: CLI overrides over the YAML file over defaults.

    Args:
        config_file: YAML file (default: ~/.prompt_manager/config.yaml)
        cli_overrides: Dotted-key overrides

    Raises:
        ConfigurationError: If the file or the merged values are invalid
    """
    config_file = config_file or DEFAULT_CONFIG_FILE
    config_dict = apply_cli_overrides(load_yaml(config_file), cli_overrides)

    try:
        return AppConfig(**config_dict)
    except ValidationError as e:
        raise ConfigurationError(
            f"Configuration validation failed: {e}\n"
            f"Please check your configuration file at {config_file}"
        ) from e


def save_config(config: AppConfig, config_file: str | None = None) -> None:
    """Write config as YAML, creating parent directories as needed."""
    config_path = Path(config_file or DEFAULT_CONFIG_FILE).expanduser()
    config_path.parent.mkdir(parents=True, exist_ok=True)

    with open(config_path, "w", encoding="utf-8") as f:
        yaml.safe_dump(config.model_dump(mode="python"), f, default_flow_style=False, sort_keys=False)
