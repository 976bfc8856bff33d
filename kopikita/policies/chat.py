"""Chat assistant: read-only questions about the shop's data."""

import logging
from collections.abc import Sequence
from typing import Any

from kopikita.agents.sanitizer import SQLPolicy
from kopikita.config import AgentSettings
from kopikita.connectors.base import ConnectorError
from kopikita.llm.models import LLMMessage
from kopikita.models.agent import AgentRunStatus, LLMConfigurationError
from kopikita.policies.base import AgentResources, AgentSite

logger = logging.getLogger(__name__)

MISSING_API_KEY_REPLY = "AI_API_KEY belum terpasang di environment. Isi dulu lalu coba lagi."
GENERIC_FAILURE_REPLY = "Maaf, terjadi kendala saat memproses chat. Coba lagi sebentar ya."
EMPTY_ANSWER_REPLY = (
    "Maaf, saya belum bisa menghasilkan jawaban sekarang. Coba ulang beberapa saat lagi."
)
STEP_LIMIT_REPLY = (
    "Maaf, pertanyaan ini butuh terlalu banyak langkah. "
    "Coba tanyakan dengan lebih spesifik ya."
)
TIMEOUT_REPLY = "Maaf, jawabannya terlalu lama diproses. Coba lagi sebentar ya."


class ChatAssistant(AgentSite):
    """Answers the owner's questions with read-only SQL over the CRM tables."""

    name = "chat"
    template = "chat_assistant.md"

    def __init__(self, resources: AgentResources, settings: AgentSettings):
        super().__init__(resources)
        self.settings = settings
        self.policy = SQLPolicy(
            read_only=True,
            row_limit=settings.chat_row_limit,
            schema_name=resources.schema_name,
        )

    async def reply(self, message: str, history: Sequence[Any] = ()) -> str:
        """
        Generate the assistant reply for one user message.

        Args:
            message: The user's question
            history: Earlier turns, each with ``role`` and ``content``

        Returns:
            Reply text; known failures come back as fixed user-facing messages
        """
        try:
            agent = await self.compile_agent(
                "default",
                self.policy,
                max_steps=self.settings.chat_max_steps,
                timeout_seconds=self.settings.chat_timeout_seconds,
            )
        except LLMConfigurationError:
            return MISSING_API_KEY_REPLY
        except ConnectorError as e:
            logger.error(f"Chat unavailable, schema could not be loaded: {e}")
            return GENERIC_FAILURE_REPLY

        window = self.settings.chat_history_window
        recent = list(history)[-window:] if window else []
        turns = [LLMMessage(role=item.role, content=item.content) for item in recent]

        result = await agent.run(message, turns)

        if result.status == AgentRunStatus.STEP_LIMIT:
            return STEP_LIMIT_REPLY
        if result.status == AgentRunStatus.TIMEOUT:
            return TIMEOUT_REPLY
        if result.status == AgentRunStatus.UPSTREAM_ERROR:
            return GENERIC_FAILURE_REPLY
        return result.final_text or EMPTY_ANSWER_REPLY
