"""
Advisor - State summaries and prompts for advisory text providers.
"""

from .prompts import StateSummary, AdvisorPrompt, summarize_state, build_advisor_prompt, SYSTEM_PROMPT
from .providers import AdvisorProvider, RuleOfThumbAdvisor, AdviceResult, consult

__all__ = [
    "StateSummary",
    "AdvisorPrompt",
    "summarize_state",
    "build_advisor_prompt",
    "SYSTEM_PROMPT",
    "AdvisorProvider",
    "RuleOfThumbAdvisor",
    "AdviceResult",
    "consult",
]
