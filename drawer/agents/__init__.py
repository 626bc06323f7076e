"""AI Agents package."""

from drawer.agents.ai_agents import (
    CHAT_INSTRUCTIONS,
    EXTRACTION_PROMPT,
    ChatAgent,
    DocumentExtractionAgent,
    UpstreamModelError,
    build_chat_prompt,
)

__all__ = [
    "CHAT_INSTRUCTIONS",
    "EXTRACTION_PROMPT",
    "ChatAgent",
    "DocumentExtractionAgent",
    "UpstreamModelError",
    "build_chat_prompt",
]
