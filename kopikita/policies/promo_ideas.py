"""Weekly promo-idea generator: read-only insight gathering with JSON output."""

import logging
import re
from datetime import UTC, date, datetime, timedelta

from pydantic import TypeAdapter, ValidationError

from kopikita.agents.output import extract_json_payload
from kopikita.agents.sanitizer import SQLPolicy
from kopikita.config import AgentSettings
from kopikita.connectors.base import ConnectorError
from kopikita.models.agent import LLMConfigurationError
from kopikita.models.api import PromoIdea, PromoIdeasResponse
from kopikita.policies.base import AgentResources, AgentSite

logger = logging.getLogger(__name__)

INVALID_WEEK_MESSAGE = "Format minggu tidak valid."
IDEA_COUNT = 3

_WEEK_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_IDEAS_ADAPTER = TypeAdapter(list[PromoIdea])

DEFAULT_PROMO_IDEAS = [
    PromoIdea(
        theme="Caramel Week",
        segment="Pelanggan dengan minat sweet drinks atau caramel (42 pelanggan)",
        why_now="Minat minuman manis jadi kelompok terbesar minggu ini.",
        message=(
            "Hi! New Caramel Cold Brew lagi hadir minggu ini - diskon 10% sampai Minggu. "
            "Mau coba besok pagi?"
        ),
        best_time="Morning rush (07:00 - 10:30)",
    ),
    PromoIdea(
        theme="Pastry + Coffee Bundle",
        segment="Pastry lovers + pembeli pagi (18 pelanggan)",
        why_now="Tag pastry naik tajam di hari kerja.",
        message="Coba latte + croissant bundle, hemat 10k. Berlaku jam 7-11 pagi. Mau saya siapin?",
        best_time="Weekday breakfast (07:00 - 11:00)",
    ),
    PromoIdea(
        theme="Weekend Oat Milk Special",
        segment="Pelanggan oat milk dan healthy choice (26 pelanggan)",
        why_now="Minat oat milk stabil naik selama 3 minggu terakhir.",
        message=(
            "Weekend ini ada Oat Latte special 15% off, cuma Sabtu-Minggu. "
            "Mau aku kirim menu rekomendasinya?"
        ),
        best_time="Weekend afternoon (14:00 - 18:00)",
    ),
]


def current_week_start(today: date | None = None) -> str:
    """Monday of the current week (UTC) as YYYY-MM-DD."""
    today = today or datetime.now(UTC).date()
    return (today - timedelta(days=today.weekday())).isoformat()


def is_valid_week_start(value: str) -> bool:
    """True for a real calendar date written as YYYY-MM-DD."""
    if not _WEEK_RE.match(value):
        return False
    try:
        return date.fromisoformat(value).isoformat() == value
    except ValueError:
        return False


def parse_promo_ideas(text: str) -> list[PromoIdea]:
    """
    Validate the agent's final answer as promo ideas.

    Accepts a JSON array, or an object holding the array under ``ideas``.

    Raises:
        ValueError: If no JSON payload is present
        ValidationError: If the payload does not match the idea shape
    """
    payload = extract_json_payload(text)
    if isinstance(payload, dict):
        payload = payload.get("ideas", [payload])
    if payload is None:
        raise ValueError("Agent answer contains no JSON payload")
    return _IDEAS_ADAPTER.validate_python(payload)


class PromoIdeaGenerator(AgentSite):
    """Drafts promo ideas for a week from live sales and interest data."""

    name = "promo"
    template = "promo_ideas.md"

    def __init__(self, resources: AgentResources, settings: AgentSettings):
        super().__init__(resources)
        self.settings = settings
        self.policy = SQLPolicy(
            read_only=True,
            row_limit=settings.promo_row_limit,
            schema_name=resources.schema_name,
        )

    async def generate(self, week_start: str | None = None) -> PromoIdeasResponse:
        """
        Generate promo ideas for a week.

        Falls back to the built-in ideas when the agent cannot produce valid
        drafts.

        Raises:
            ValueError: If ``week_start`` is not a valid YYYY-MM-DD date
        """
        week = (week_start or "").strip() or current_week_start()
        if not is_valid_week_start(week):
            raise ValueError(INVALID_WEEK_MESSAGE)

        try:
            agent = await self.compile_agent(
                "default",
                self.policy,
                max_steps=self.settings.promo_max_steps,
                timeout_seconds=self.settings.promo_timeout_seconds,
                idea_count=IDEA_COUNT,
            )
        except (LLMConfigurationError, ConnectorError) as e:
            logger.warning(f"Promo agent unavailable, using default ideas: {e}")
            return self._fallback(week)

        result = await agent.run(
            f"Buat {IDEA_COUNT} ide promo untuk minggu yang dimulai {week} (Senin)."
        )
        if not result.ok:
            logger.warning(f"Promo agent stopped ({result.status}): {result.detail}")
            return self._fallback(week)

        try:
            ideas = parse_promo_ideas(result.final_text)
        except (ValueError, ValidationError) as e:
            logger.warning(f"Promo agent returned unusable ideas: {e}")
            return self._fallback(week)

        if not ideas:
            return self._fallback(week)

        logger.info(f"Generated {len(ideas)} promo ideas for week {week}")
        return PromoIdeasResponse(week_start=week, source="agent", ideas=ideas[:IDEA_COUNT])

    def _fallback(self, week: str) -> PromoIdeasResponse:
        return PromoIdeasResponse(
            week_start=week,
            source="fallback",
            ideas=[idea.model_copy() for idea in DEFAULT_PROMO_IDEAS],
        )
