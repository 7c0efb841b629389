"""Client configuration — server command, completion backend, prompt settings.

Configuration comes from an optional YAML file.  Environment variables in
the form ``${VAR}`` or ``$VAR`` are expanded before parsing, and
``REALTOR_MODEL`` overrides the configured model name.
"""

from __future__ import annotations

import os
import shlex
import sys
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, ValidationError

DEFAULT_MODEL = "gemini-2.0-flash"
DEFAULT_API_BASE = "https://generativelanguage.googleapis.com/v1beta"
API_KEY_VARIABLE = "GEMINI_API_KEY"
MODEL_VARIABLE = "REALTOR_MODEL"

DEFAULT_SYSTEM_INSTRUCTION = """\
You are a friendly, helpful AI assistant that helps users find information \
about real estate. You must use the provided tools to answer questions about estates.

Speak naturally and conversationally. Avoid quoting raw field names like \
"description" or "price" unless the user asks for specific data, and \
paraphrase the data rather than saying "the description says...".

If an estate's data does not mention something (like a garden), let the user \
know gently, for example: "It doesn't look like this estate has a garden."

When calling tools that require estate names, extract only the estate name \
from the user's sentence. Do not include surrounding context (e.g. "having a \
storey") in the name.

Your job is not just to return data but to help the user make informed \
decisions with friendly, natural guidance.

Example:
User: Does the Ocean View estate have a garden?
Assistant (internal reasoning): The user is asking about a specific estate. I need its details.
[Calls getEstatInfo with name: "Ocean View"]
Assistant: I checked the estate's details. It does have a garden.
"""


def default_server_command() -> str:
    """Command that starts the bundled server with the current interpreter."""
    return f"{shlex.quote(sys.executable)} -m realtor.server"


class ConfigError(Exception):
    """Raised when a config file cannot be read or fails validation."""


class ModelConfig(BaseModel):
    """Completion backend settings.

    ``backend`` selects the service: ``gemini`` talks to the generateContent
    REST API directly, ``litellm`` routes ``model`` through LiteLLM
    (e.g. ``openai/gpt-4o``, ``anthropic/claude-3-5-sonnet``).
    """

    backend: Literal["gemini", "litellm"] = "gemini"
    model: str = DEFAULT_MODEL
    api_key: str | None = None
    api_base: str | None = None
    max_output_tokens: int = 2048
    request_timeout: float | None = 60.0
    system_instruction: str = DEFAULT_SYSTEM_INSTRUCTION
    extra: dict[str, Any] = Field(default_factory=lambda: dict[str, Any]())


class TelemetrySettings(BaseModel):
    """Optional span export; spans are no-ops unless enabled."""

    enabled: bool = False
    otlp_endpoint: str | None = None
    console: bool = False


class ClientConfig(BaseModel):
    """Top-level client configuration."""

    server_command: str = Field(default_factory=default_server_command)
    server_env: dict[str, str] | None = None
    model: ModelConfig = Field(default_factory=ModelConfig)
    telemetry: TelemetrySettings | None = None


def load_config(path: Path | None = None) -> ClientConfig:
    """Load a :class:`ClientConfig` from *path*, or defaults when ``None``.

    Raises:
        ConfigError: On unreadable files, YAML errors, or schema violations.
    """
    data: Any = {}
    if path is not None:
        try:
            raw = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise ConfigError(f"Cannot read {path}: {exc}") from exc

        try:
            data = yaml.safe_load(os.path.expandvars(raw)) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"YAML parse error: {exc}") from exc

        if not isinstance(data, dict):
            raise ConfigError("Config YAML must be a mapping")

    try:
        config = ClientConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(str(exc)) from exc

    override = os.environ.get(MODEL_VARIABLE)
    if override:
        config.model.model = override
    return config
