"""Configuration: Pydantic models for macro settings."""

from __future__ import annotations

import json
import os
from typing import Any

from pydantic import BaseModel, Field

from macro.alias import DuplicatePolicy

DEFAULT_SCRIPT_PATHS = [
    "./macro.ini",
    "~/.macro.ini",
    "~/.config/macro/macro.ini",
]

_FALSE_VALUES = {"0", "false", "no", "off"}


class RelayConfig(BaseModel):
    """Line relay behaviour."""

    max_line_length: int = Field(
        default=1024,
        gt=2,
        description="Longest line, in bytes, accepted from input or sent to the child",
    )
    repeat: bool = Field(
        default=True, description="An empty line resends the last command"
    )
    line_editing: bool = Field(
        default=True,
        description="Use a line editor with history when stdin is a terminal",
    )
    prompt: str = Field(default="", description="Prompt shown by the line editor")
    history_file: str | None = Field(
        default="~/.macro_history",
        description="Line editor history file (None keeps history in memory)",
    )


class AliasConfig(BaseModel):
    """Alias table limits and redefinition policy."""

    max_aliases: int = Field(default=1024, ge=1)
    duplicates: DuplicatePolicy = Field(
        default=DuplicatePolicy.REPLACE,
        description=(
            "'replace' rewrites an existing alias on redefinition; 'shadow' "
            "appends a new entry that the older one keeps hiding"
        ),
    )


class ScriptConfig(BaseModel):
    """Initialization script lookup."""

    search_paths: list[str] = Field(default_factory=lambda: list(DEFAULT_SCRIPT_PATHS))


class MacroConfig(BaseModel):
    """Top-level macro configuration."""

    relay: RelayConfig = Field(default_factory=RelayConfig)
    aliases: AliasConfig = Field(default_factory=AliasConfig)
    script: ScriptConfig = Field(default_factory=ScriptConfig)

    @classmethod
    def load(cls, config_path: str | None = None) -> MacroConfig:
        """Load config from file, env vars, or defaults.

        Priority: env vars > config file > defaults.

        Env vars:
            MACRO_MAX_LINE_LENGTH  - Maximum line length in bytes
            MACRO_MAX_ALIASES      - Alias table capacity
            MACRO_REPEAT           - 0/false/no/off turns off ENTER-repeats-last-command
            MACRO_DUPLICATES       - Alias redefinition policy (replace/shadow)
            MACRO_HISTORY_FILE     - Line editor history file
            MACRO_INI              - Script searched before the default locations
        """
        from dotenv import find_dotenv, load_dotenv

        # .env is looked up from the working directory
        load_dotenv(find_dotenv(usecwd=True))

        config_data: dict[str, Any] = {}

        if config_path and os.path.exists(config_path):
            with open(config_path) as f:
                config_data = json.load(f)

        relay = config_data.get("relay", {})
        aliases = config_data.get("aliases", {})
        script = config_data.get("script", {})

        env_max_line = os.environ.get("MACRO_MAX_LINE_LENGTH")
        if env_max_line:
            relay["max_line_length"] = int(env_max_line)

        env_repeat = os.environ.get("MACRO_REPEAT")
        if env_repeat:
            relay["repeat"] = env_repeat.strip().lower() not in _FALSE_VALUES

        env_history = os.environ.get("MACRO_HISTORY_FILE")
        if env_history:
            relay["history_file"] = env_history

        env_max_aliases = os.environ.get("MACRO_MAX_ALIASES")
        if env_max_aliases:
            aliases["max_aliases"] = int(env_max_aliases)

        env_duplicates = os.environ.get("MACRO_DUPLICATES")
        if env_duplicates:
            aliases["duplicates"] = env_duplicates.lower()

        env_ini = os.environ.get("MACRO_INI")
        if env_ini:
            paths = script.get("search_paths", list(DEFAULT_SCRIPT_PATHS))
            script["search_paths"] = [env_ini, *paths]

        if relay:
            config_data["relay"] = relay
        if aliases:
            config_data["aliases"] = aliases
        if script:
            config_data["script"] = script

        return cls.model_validate(config_data)
