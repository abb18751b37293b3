"""
Agent profiles — YAML files holding the serializable part of an Agent.

A profile carries everything except the tool registry, which is code and is
attached when the profile is turned back into a builder:

    profile = load_profile("~/.config/agentforge/agents/qwen_qwen3-8b.yaml")
    agent = profile.to_builder(registry).build()
"""

import dataclasses
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

import yaml

from agentforge.agents.prompts import DEFAULT_SYSTEM_PROMPT
from agentforge.config import (
    DEFAULT_API_KEY, DEFAULT_BASE_URL, DEFAULT_TEMPERATURE, DEFAULT_TOP_P,
)
from agentforge.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


@dataclass
class AgentProfile:
    model: str = ""
    url: str = DEFAULT_BASE_URL
    api_key: str = DEFAULT_API_KEY
    system_prompt: str = DEFAULT_SYSTEM_PROMPT
    temperature: float = DEFAULT_TEMPERATURE
    top_p: float = DEFAULT_TOP_P

    def to_builder(self, registry=None):
        """AgentBuilder with these settings and an optional tool registry."""
        from agentforge.agents.base import AgentBuilder
        builder = (AgentBuilder()
                   .url(self.url)
                   .api_key(self.api_key)
                   .system_prompt(self.system_prompt)
                   .temperature(self.temperature)
                   .top_p(self.top_p)
                   .tool_registry(registry))
        if self.model:
            builder.model(self.model)
        return builder


def profile_from_agent(agent) -> AgentProfile:
    return AgentProfile(
        model=agent.model,
        url=agent.url,
        api_key=agent.api_key,
        system_prompt=agent.system_prompt,
        temperature=agent.temperature,
        top_p=agent.top_p,
    )


def profile_filename(model: str) -> str:
    """File name for a model's profile; path separators are not allowed."""
    return model.replace("/", "_").replace(":", "_") + ".yaml"


# ── Parsing ──

def _parse_dict(data: dict, cls, **overrides):
    """Create a dataclass instance from a dict, ignoring unknown keys."""
    field_names = {f.name for f in dataclasses.fields(cls)}
    filtered = {k: v for k, v in data.items() if k in field_names}
    filtered.update(overrides)
    return cls(**filtered)


def _env_api_key() -> str:
    return os.environ.get("FORGE_API_KEY", DEFAULT_API_KEY)


def _load_profile_from_dict(raw: dict) -> AgentProfile:
    data = dict(raw)
    # Keys are better kept out of files; the environment fills the gap.
    data.setdefault("api_key", _env_api_key())
    try:
        profile = _parse_dict(data, AgentProfile)
        profile.temperature = float(profile.temperature)
        profile.top_p = float(profile.top_p)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid agent profile: {e}") from e
    return profile


def load_profile_from_string(text: str) -> AgentProfile:
    try:
        raw = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in agent profile: {e}") from e
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigurationError("Agent profile must be a YAML mapping")
    return _load_profile_from_dict(raw)


def load_profile(path: Union[str, Path]) -> AgentProfile:
    path = Path(path).expanduser()
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigurationError(f"Failed to read agent profile {path}: {e}") from e
    logger.debug("Loaded agent profile from %s", path)
    return load_profile_from_string(text)


def dump_profile(profile: AgentProfile) -> str:
    """YAML for the profile. An api_key the environment would supply anyway is left out."""
    data = dataclasses.asdict(profile)
    if data["api_key"] == _env_api_key():
        del data["api_key"]
    return yaml.safe_dump(data, sort_keys=False, allow_unicode=True)


def save_profile(profile: AgentProfile, directory: Union[str, Path]) -> Path:
    """Write the profile into ``directory`` under its model's file name."""
    if not profile.model:
        raise ConfigurationError("Cannot save a profile without a model")
    directory = Path(directory).expanduser()
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / profile_filename(profile.model)
    path.write_text(dump_profile(profile), encoding="utf-8")
    logger.info("Saved agent profile %s", path)
    return path


def load_profile_for_model(directory: Union[str, Path], model: str) -> Optional[AgentProfile]:
    """Profile saved for ``model`` in ``directory``, or None if there is none."""
    path = Path(directory).expanduser() / profile_filename(model)
    if not path.exists():
        return None
    return load_profile(path)
