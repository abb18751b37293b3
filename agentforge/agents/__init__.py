"""
Agent configuration: Agent, AgentBuilder and default prompts.
"""

from agentforge.agents.base import Agent, AgentBuilder
from agentforge.agents.prompts import (
    DEFAULT_SYSTEM_PROMPT, build_task_history, build_user_prompt,
)

__all__ = [
    "Agent",
    "AgentBuilder",
    "DEFAULT_SYSTEM_PROMPT",
    "build_task_history",
    "build_user_prompt",
]
