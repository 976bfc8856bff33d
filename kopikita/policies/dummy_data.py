"""Dummy-data seeding agent: read-write SQL gated by generation mode."""

import logging

from kopikita.agents.sanitizer import SQLPolicy
from kopikita.config import AgentSettings
from kopikita.models.agent import AgentError, AgentRunStatus
from kopikita.models.api import GenerationMode
from kopikita.policies.base import AgentResources, AgentSite

logger = logging.getLogger(__name__)

STEP_LIMIT_OUTPUT = (
    "⚠️ Agent mencapai batas langkah maksimum. "
    "Coba lagi dengan mode `existing` yang lebih ringan."
)
NO_OUTPUT = "No output from agent."
EXISTING_MODE_FORBIDDEN_TABLES = ("Tag", "Product", "Customer")
USER_INSTRUCTION = (
    "Jalankan generate dummy data sesuai mode aktif. "
    "Hentikan setelah target minimum terpenuhi, lalu tampilkan ringkasan akhir."
)

MINIMUM_TARGETS: dict[str, list[str]] = {
    "existing": [
        "at least 10 sales",
        "0 new tags",
        "0 new products",
        "0 new customers",
    ],
    "new": [
        "at least 1 tags",
        "at least 1 products",
        "at least 1 customers",
        "at least 10 sales",
    ],
}


def policy_for_mode(mode: GenerationMode, schema_name: str = "public") -> SQLPolicy:
    """Write-enabled policy; ``existing`` may only add sales."""
    forbidden = EXISTING_MODE_FORBIDDEN_TABLES if mode == "existing" else ()
    return SQLPolicy(read_only=False, forbidden_write_tables=forbidden, schema_name=schema_name)


class DummyDataGenerator(AgentSite):
    """Seeds realistic coffee-shop rows through the model's own SQL."""

    name = "dummy_data"
    template = "dummy_data.md"

    def __init__(self, resources: AgentResources, settings: AgentSettings):
        super().__init__(resources)
        self.settings = settings

    async def run(self, mode: GenerationMode = "mixed") -> str:
        """
        Run the seeding agent for one mode.

        Returns:
            The agent's summary, the step-limit warning, or "No output from agent."

        Raises:
            LLMConfigurationError: If AI_API_KEY is not configured
            ConnectionError: If the database is unreachable
            AgentError: If the run timed out or the model endpoint failed
        """
        if mode not in ("new", "existing", "mixed"):
            raise ValueError(f"Unknown generation mode: {mode}")

        agent = await self.compile_agent(
            mode,
            policy_for_mode(mode, self.resources.schema_name),
            max_steps=self.settings.seed_max_steps,
            timeout_seconds=self.settings.seed_timeout_seconds,
            temperature=0.0,
            mode=mode,
            minimum_targets=MINIMUM_TARGETS["existing" if mode == "existing" else "new"],
            forbidden_tables=EXISTING_MODE_FORBIDDEN_TABLES,
        )

        result = await agent.run(USER_INSTRUCTION)

        if result.status == AgentRunStatus.STEP_LIMIT:
            logger.warning(f"Dummy data agent hit the step limit in mode {mode}")
            return STEP_LIMIT_OUTPUT
        if result.status != AgentRunStatus.DONE:
            raise AgentError(
                "DummyDataGenerator",
                result.detail or f"Agent run ended with {result.status}",
                context={"mode": mode, "status": str(result.status), "steps": result.steps},
            )

        logger.info(
            f"Dummy data agent finished in mode {mode}",
            extra={"mode": mode, "tool_calls": result.tool_calls},
        )
        return result.final_text or NO_OUTPUT
