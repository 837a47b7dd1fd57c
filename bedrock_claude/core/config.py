"""Configuration loader for the Bedrock Claude adapter. Merges a TOML file, environment variables and defaults into Settings."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

try:
    import tomllib
except ImportError:  # pragma: no cover - fallback for older Python
    import tomli as tomllib  # type: ignore

DEFAULT_CONFIG_PATH = Path("bedrock_claude.toml")
CONFIG_PATH_ENV = "BEDROCK_CLAUDE_CONFIG"
CLAUDE_V2_MODEL_ID = "anthropic.claude-v2"
DEFAULT_MAX_TOKENS = 256


@dataclass(frozen=True)
class Settings:
    """Adapter settings.

    Attributes:
        region: AWS region hosting the Bedrock runtime endpoint.
        model_id: Bedrock model identifier.
        human_assistant_prompt: Wrap prompts in Human/Assistant turns.
        max_tokens: Default ``max_tokens_to_sample``.
    """

    region: str
    model_id: str = CLAUDE_V2_MODEL_ID
    human_assistant_prompt: bool = True
    max_tokens: int = DEFAULT_MAX_TOKENS


def load_config(path: Path | None) -> Dict[str, Any]:
    """Read the ``[bedrock_claude]`` table of a TOML file; a file without that table is used whole."""
    if not path or not path.is_file():
        return {}
    data = tomllib.loads(path.read_text(encoding="utf-8"))
    section = data.get("bedrock_claude")
    return dict(section) if isinstance(section, dict) else dict(data)


_TRUE_WORDS = frozenset({"1", "true", "yes", "y", "on"})
_FALSE_WORDS = frozenset({"0", "false", "no", "n", "off", ""})


def _as_max_tokens(value: Any, default: int) -> int:
    try:
        tokens = int(value)
    except (TypeError, ValueError):
        return default
    return tokens if tokens > 0 else default


def _as_flag(value: Any, default: bool) -> bool:
    if isinstance(value, (bool, int)):
        return bool(value)
    word = str(value).strip().lower()
    if word in _TRUE_WORDS:
        return True
    if word in _FALSE_WORDS:
        return False
    return default


def _lookup(env: Mapping[str, str], config: Mapping[str, Any], env_key: str, config_key: str) -> Any:
    """Non-empty env var wins over the config file; ``None`` when neither is set."""
    value = env.get(env_key)
    if value not in (None, ""):
        return value
    return config.get(config_key)


def build_effective_config(config: Mapping[str, Any], env: Mapping[str, str]) -> Dict[str, Any]:
    """Resolve region, model and prompt settings; ``AWS_REGION`` is the last region fallback."""
    region = _lookup(env, config, "BEDROCK_REGION", "region") or env.get("AWS_REGION") or ""
    model_id = _lookup(env, config, "CLAUDE_MODEL_ID", "model_id") or CLAUDE_V2_MODEL_ID
    framing = _lookup(env, config, "CLAUDE_HUMAN_ASSISTANT_PROMPT", "human_assistant_prompt")
    max_tokens = _lookup(env, config, "CLAUDE_MAX_TOKENS", "max_tokens")
    return {
        "region": str(region).strip(),
        "model_id": str(model_id).strip(),
        "human_assistant_prompt": True if framing is None else _as_flag(framing, True),
        "max_tokens": DEFAULT_MAX_TOKENS if max_tokens is None else _as_max_tokens(max_tokens, DEFAULT_MAX_TOKENS),
    }


def load_settings(config_path: Path | None = None, env: Optional[Mapping[str, str]] = None) -> Settings:
    """Load adapter settings from config file, environment variables, and defaults."""
    env = os.environ if env is None else env
    cfg_path = config_path or Path(env.get(CONFIG_PATH_ENV) or DEFAULT_CONFIG_PATH)
    effective = build_effective_config(load_config(cfg_path), env)
    return Settings(
        region=effective["region"],
        model_id=effective["model_id"],
        human_assistant_prompt=bool(effective["human_assistant_prompt"]),
        max_tokens=int(effective["max_tokens"]),
    )
