"""
Default prompt text and helpers that build the opening history of a run.
"""

from typing import Optional

from agentforge.models import Message

DEFAULT_SYSTEM_PROMPT = "You are a helpful assistant.\n Strict follow user instructions"


def build_user_prompt(task: str, context: Optional[str] = None) -> str:
    """Prefix the task with caller-supplied context, if any."""
    if context:
        return f"Context: {context}\n\n User: {task}"
    return task


def build_task_history(task: str, context: Optional[str] = None,
                       image_b64: Optional[str] = None) -> list[Message]:
    """Single-message history for a one-shot task, optionally with an image.

    The system message is not included; the orchestration loop adds it.
    """
    text = build_user_prompt(task, context)
    if image_b64:
        return [Message.user_with_image(text, image_b64)]
    return [Message.user(text)]
