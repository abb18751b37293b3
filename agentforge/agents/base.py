"""
Agent configuration — the immutable settings one orchestration run reads.

Agents are assembled with AgentBuilder, which supplies defaults for every
field except the model identifier:

    agent = (AgentBuilder()
             .model("qwen/qwen3-8b")
             .tool_registry(registry)
             .build())
"""

from dataclasses import dataclass, field
from typing import Optional

from agentforge.agents.prompts import DEFAULT_SYSTEM_PROMPT
from agentforge.config import (
    DEFAULT_API_KEY, DEFAULT_BASE_URL, DEFAULT_TEMPERATURE, DEFAULT_TOP_P,
)
from agentforge.exceptions import ConfigurationError
from agentforge.tools.registry import ToolRegistry


@dataclass(frozen=True)
class Agent:
    model: str
    url: str = DEFAULT_BASE_URL
    api_key: str = field(default=DEFAULT_API_KEY, repr=False)
    system_prompt: str = DEFAULT_SYSTEM_PROMPT
    temperature: float = DEFAULT_TEMPERATURE
    top_p: float = DEFAULT_TOP_P
    # Shared, never copied: clones of an agent point at the same registry.
    tool_registry: Optional[ToolRegistry] = field(default=None, repr=False, compare=False)


class AgentBuilder:
    """Fluent builder for Agent. ``build()`` requires a model."""

    def __init__(self):
        self._model: Optional[str] = None
        self._url = DEFAULT_BASE_URL
        self._api_key = DEFAULT_API_KEY
        self._system_prompt = DEFAULT_SYSTEM_PROMPT
        self._temperature = DEFAULT_TEMPERATURE
        self._top_p = DEFAULT_TOP_P
        self._tool_registry: Optional[ToolRegistry] = None

    @classmethod
    def from_agent(cls, agent: Agent) -> "AgentBuilder":
        """Builder pre-filled from an existing agent, registry included."""
        return (cls()
                .model(agent.model)
                .url(agent.url)
                .api_key(agent.api_key)
                .system_prompt(agent.system_prompt)
                .temperature(agent.temperature)
                .top_p(agent.top_p)
                .tool_registry(agent.tool_registry))

    @classmethod
    def from_yaml(cls, text: str) -> "AgentBuilder":
        from agentforge.profile import load_profile_from_string
        return load_profile_from_string(text).to_builder()

    def to_yaml(self) -> str:
        """Serialize every setting except the tool registry."""
        from agentforge.profile import AgentProfile, dump_profile
        return dump_profile(AgentProfile(
            model=self._model or "",
            url=self._url,
            api_key=self._api_key,
            system_prompt=self._system_prompt,
            temperature=self._temperature,
            top_p=self._top_p,
        ))

    # ── Setters ──

    def model(self, model: str) -> "AgentBuilder":
        self._model = model
        return self

    def url(self, url: str) -> "AgentBuilder":
        self._url = url
        return self

    def api_key(self, api_key: str) -> "AgentBuilder":
        self._api_key = api_key
        return self

    def system_prompt(self, prompt: str) -> "AgentBuilder":
        self._system_prompt = prompt
        return self

    def temperature(self, temperature: float) -> "AgentBuilder":
        self._temperature = temperature
        return self

    def top_p(self, top_p: float) -> "AgentBuilder":
        self._top_p = top_p
        return self

    def tool_registry(self, registry: Optional[ToolRegistry]) -> "AgentBuilder":
        self._tool_registry = registry
        return self

    def build(self) -> Agent:
        if not self._model:
            raise ConfigurationError("Model is required")
        return Agent(
            model=self._model,
            url=self._url,
            api_key=self._api_key,
            system_prompt=self._system_prompt,
            temperature=self._temperature,
            top_p=self._top_p,
            tool_registry=self._tool_registry,
        )
