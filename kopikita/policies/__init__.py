"""
Agent call sites.

    - ChatAssistant: read-only chat answers (row cap 5, short budget, time-boxed)
    - PromoIdeaGenerator: read-only weekly promo drafts as JSON
    - DummyDataGenerator: read-write seeding gated by generation mode
"""

from kopikita.policies.base import AgentResources, AgentSite
from kopikita.policies.chat import ChatAssistant
from kopikita.policies.dummy_data import DummyDataGenerator, policy_for_mode
from kopikita.policies.promo_ideas import (
    DEFAULT_PROMO_IDEAS,
    PromoIdeaGenerator,
    current_week_start,
    is_valid_week_start,
)

__all__ = [
    "AgentResources",
    "AgentSite",
    "ChatAssistant",
    "DummyDataGenerator",
    "PromoIdeaGenerator",
    "DEFAULT_PROMO_IDEAS",
    "current_week_start",
    "is_valid_week_start",
    "policy_for_mode",
]
