"""
Catalog of non-restrictive alternative strategies.

Shown to the caregiver whenever a restraint is requested or blocked.  The
catalog is static: every context receives the full set, which always
covers each ``StrategyCategory`` with concrete examples.
"""

from __future__ import annotations

from careguard.models import Strategy, StrategyCategory


STRATEGY_CATALOG: tuple[Strategy, ...] = (
    Strategy(
        id="distraction-1",
        category=StrategyCategory.DISTRACTION,
        title="Recreational activities",
        description="Offer activities that keep the person occupied and stimulated.",
        examples=[
            "Relaxing or favourite music",
            "Family photo albums",
            "Simple manual tasks (folding towels, sorting objects)",
            "Television or radio programmes of interest",
        ],
    ),
    Strategy(
        id="distraction-2",
        category=StrategyCategory.DISTRACTION,
        title="Company and supervision",
        description="Increase caregiver presence and attention.",
        examples=[
            "More frequent visits and checks",
            "Seat the person near the caregiver's activity area",
            "Involve family members in care",
            "Consider a companion or volunteer",
        ],
    ),
    Strategy(
        id="communication-1",
        category=StrategyCategory.COMMUNICATION,
        title="Therapeutic communication",
        description="Use effective communication to reduce anxiety and agitation.",
        examples=[
            "Speak in a calm, reassuring tone",
            "Keep eye contact and open body language",
            "Acknowledge the person's emotions",
            "Use short, simple sentences",
            "Avoid confrontation or direct correction",
        ],
    ),
    Strategy(
        id="communication-2",
        category=StrategyCategory.COMMUNICATION,
        title="Reality orientation",
        description="Help the person stay oriented in time and place.",
        examples=[
            "Visible clocks and calendars",
            "Gentle verbal reminders of place and time",
            "Predictable, consistent routines",
            "Clear signage around the home",
        ],
    ),
    Strategy(
        id="communication-3",
        category=StrategyCategory.COMMUNICATION,
        title="Attention to unexpressed needs",
        description="Identify and meet needs that may be causing agitation.",
        examples=[
            "Check for pain and provide adequate analgesia",
            "Ensure hydration and nutrition",
            "Schedule regular bathroom visits",
            "Check comfort (clothing, temperature, position)",
            "Review medication side effects",
        ],
    ),
    Strategy(
        id="environmental-1",
        category=StrategyCategory.ENVIRONMENTAL,
        title="Environment optimisation",
        description="Adapt the surroundings to promote safety and comfort.",
        examples=[
            "Adequate lighting without shadows or glare",
            "Reduce noise and excess stimulation",
            "Comfortable room temperature",
            "Easy access to the bathroom",
            "Remove dangerous objects from reach",
        ],
    ),
    Strategy(
        id="environmental-2",
        category=StrategyCategory.ENVIRONMENTAL,
        title="Non-restrictive safety adaptations",
        description="Put safety measures in place that do not restrict movement.",
        examples=[
            "Low bed or floor mattress",
            "Non-slip rugs",
            "Partial (non-enclosing) bed rails",
            "Motion sensors that alert the caregiver",
            "Safe spaces for walking about",
        ],
    ),
)


def all_strategies() -> list[Strategy]:
    """Return copies of every catalog entry."""
    return [s.model_copy(deep=True) for s in STRATEGY_CATALOG]
