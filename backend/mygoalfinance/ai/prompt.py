"""Prompt constants and helpers for the financial education advisor."""

from __future__ import annotations

from typing import Any

from ..services.budget_rule import BudgetSplit

SYSTEM_PROMPT = """
You are a personal-finance EDUCATION assistant. Your job is to teach and guide with sound practices.

Limits:
- You do not give professional financial advice or specific buy/sell recommendations for assets.
- You never guarantee returns or give mandatory instructions.
- If the user asks for a specific recommendation (for example "should I buy X today?"), answer with general education on how to evaluate that kind of decision, its risks and time horizon, and suggest consulting a certified advisor.

Style:
- Clear, short, actionable answers.
- Prioritize fundamentals: budgeting (50/30/20 rule as a reference), emergency fund (3-6 months), debt control, SMART goals, diversification, investment horizon, cost/benefit, and periodic review.
- Use PERCENTAGES and RANGES; avoid fixed absolute figures except for teaching examples.
- When it adds value, include micro-steps or a short checklist.

Personalization:
- If you know the approximate monthly income, main goal, experience level or age range, adapt the language and give ILLUSTRATIVE NUMERIC EXAMPLES, noting they are a reference and may vary.

Closing:
- End with a short note: "This is financial education, not professional advice."
""".strip()

BUDGET_INTENT_MARKERS = ("budget", "50/30/20", "monthly savings", "how to save")
NOT_AVAILABLE = "N/A"


def is_budget_intent(message: str) -> bool:
    lowered = message.lower()
    return any(marker in lowered for marker in BUDGET_INTENT_MARKERS)


def render_profile(profile: dict[str, Any] | None) -> str:
    if not profile:
        return "User profile: not available."

    def _field(key: str) -> Any:
        value = profile.get(key)
        return NOT_AVAILABLE if value is None else value

    return (
        "User profile (if available):\n"
        f"- Name: {_field('name')}\n"
        f"- Age range: {_field('age_range')}\n"
        f"- Finance experience: {_field('experience')}\n"
        f"- Approx. monthly income: {_field('monthly_income')}\n"
        f"- Main goal: {_field('finance_goal')}"
    )


def render_budget_example(monthly_income: Any, split: BudgetSplit) -> str:
    return (
        f"50/30/20 example with income {monthly_income}:\n"
        f"- Needs (~50%): {split.needs}\n"
        f"- Wants (~30%): {split.wants}\n"
        f"- Savings/Goal (~20%): {split.savings}\n"
        "(Illustrative reference only; adjust to the user's reality)"
    )


def build_user_content(
    *,
    profile_text: str,
    history_text: str,
    budget_example: str,
    message: str,
) -> str:
    """Join the context blocks, skipping the budget block when empty."""
    blocks = [
        f"Context:\n{profile_text}",
        f"Recent history:\n{history_text}",
        f"Budget reference:\n{budget_example}" if budget_example else "",
        f"New question:\n{message}",
    ]
    return "\n\n".join(block for block in blocks if block)
