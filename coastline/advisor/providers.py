"""
Advisory text providers.

The host picks a provider; the core only needs advise(prompt) -> str.
RuleOfThumbAdvisor works offline from the summary alone.
"""

from __future__ import annotations
from dataclasses import dataclass
import logging
from typing import Protocol, runtime_checkable, TYPE_CHECKING

from .prompts import AdvisorPrompt, StateSummary, build_advisor_prompt, summarize_state

if TYPE_CHECKING:
    from ..engine_core.state import GameState

logger = logging.getLogger(__name__)


@runtime_checkable
class AdvisorProvider(Protocol):
    def advise(self, prompt: AdvisorPrompt, summary: StateSummary) -> str:
        ...


class RuleOfThumbAdvisor:
    """Deterministic advice from thresholds on the summary."""

    def advise(self, prompt: AdvisorPrompt, summary: StateSummary) -> str:
        resources = summary.resources
        lines = []

        unprotected = summary.coastal_cells - summary.protected_coastal_cells - summary.flooded_cells
        if unprotected > 0:
            lines.append(
                f"- {unprotected} coastal cell(s) are unprotected: build mangroves or seawalls there."
            )
        if resources.get("resilience", 0) < 50:
            lines.append(f"- Resilience ({resources.get('resilience', 0):g}) is below the 50 needed to win.")
        if resources.get("environment", 0) < 40:
            lines.append("- The environment is fragile: avoid industrial zones, restore mangroves.")
        if resources.get("wellbeing", 0) < 60:
            lines.append("- Wellbeing is below 60: residential zones raise it.")
        if resources.get("money", 0) < 30:
            lines.append("- Money is low: wait a turn for income before building.")

        if not lines:
            lines.append("- The city is on track. Keep the coast protected until 2060.")
        return "Advisor recommendations:\n" + "\n".join(lines)


@dataclass
class AdviceResult:
    success: bool
    text: str | None = None
    error: str | None = None


def consult(state: GameState, provider: AdvisorProvider) -> AdviceResult:
    """Ask a provider for advice. Provider failures become a failed result."""
    summary = summarize_state(state)
    prompt = build_advisor_prompt(summary)
    try:
        text = provider.advise(prompt, summary)
    except Exception as e:
        logger.warning("Advisor failed: %s", e)
        return AdviceResult(success=False, error=str(e))
    return AdviceResult(success=True, text=text)
