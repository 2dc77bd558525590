"""System prompt assembly for the advisor agent.

The prompt template lives in ``advisor_prompt.txt``. Each turn it is filled
with the current canvas, optional retrieved knowledge and a tone profile.
"""

import logging
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from slc_advisor.canvas.models import CanvasState
from slc_advisor.canvas.sections import (
    CUSTOMER_SECTIONS,
    ECONOMIC_SECTIONS,
    IMPACT_FIELD_LABELS,
    IMPACT_FIELDS,
    SECTION_LABELS,
)

logger = logging.getLogger(__name__)

PROMPT_FILE = Path(__file__).parent / "advisor_prompt.txt"

NEW_CANVAS_CONTEXT = """This is a brand new canvas - all sections are empty.

The user is just getting started with their Social Lean Canvas. Your task is to:
1. Welcome them warmly and learn about their social venture idea
2. Ask about the problem they want to solve and who they want to help
3. Once you understand their idea, use the update_purpose tool to capture their purpose

Start with a natural, friendly conversation. Do NOT list all the sections or overwhelm them with \
structure - just ask about their idea and let the conversation flow naturally."""


@lru_cache(maxsize=1)
def load_prompt_template() -> str:
    """Load the advisor prompt template."""
    text = PROMPT_FILE.read_text(encoding="utf-8")
    logger.info(f"Loaded advisor prompt from {PROMPT_FILE}")
    return text


# =============================================================================
# Tone profiles
# =============================================================================


@dataclass(frozen=True)
class ToneProfile:
    id: str
    style: str
    depth: str
    pacing: str
    avoid: tuple[str, ...]


TONE_PROFILES: dict[str, ToneProfile] = {
    "beginner": ToneProfile(
        id="beginner",
        style="ALWAYS use simple, everyday language. Avoid jargon. If you must use a term, explain it.",
        depth="Give step-by-step guidance. Ask only ONE question at a time. Wait for answers.",
        pacing="Move slowly. Confirm understanding before proceeding. Celebrate small wins.",
        avoid=(
            "You're absolutely right",
            "Great question",
            "I'd be happy to",
            "Certainly",
            "Absolutely",
            "Indeed",
        ),
    ),
    "experienced": ToneProfile(
        id="experienced",
        style="Use professional terminology. Be direct and concise. Skip unnecessary preamble.",
        depth="Focus on strategic insights and trade-offs. Challenge assumptions.",
        pacing="Move efficiently. Skip basic explanations unless asked.",
        avoid=("Let me explain the basics", "As you may know", "Simply put"),
    ),
}

DEFAULT_TONE_PROFILE = "beginner"


def build_tone_modifier(profile_id: str) -> str:
    """Communication-style block appended to the system prompt."""
    profile = TONE_PROFILES.get(profile_id, TONE_PROFILES[DEFAULT_TONE_PROFILE])
    avoid_list = "\n".join(f'- "{phrase}"' for phrase in profile.avoid)
    return (
        "## CRITICAL: Communication Style (FOLLOW STRICTLY)\n\n"
        f"**Tone Profile: {profile.id}**\n\n"
        f"- {profile.style}\n- {profile.depth}\n- {profile.pacing}\n\n"
        f"**NEVER use these phrases or similar:**\n{avoid_list}\n\n"
        "Be genuine and direct. Avoid filler phrases and excessive validation."
    )


# =============================================================================
# Canvas context
# =============================================================================


def _line(label: str, content: str) -> str:
    return f"- {label}: {content}" if content else f"- {label}: (empty)"


def format_canvas_context(canvas: CanvasState) -> str:
    """Render the canvas state for the system prompt."""
    if canvas.is_empty:
        return NEW_CANVAS_CONTEXT

    parts = []

    purpose = canvas.section_content("purpose")
    parts.append(f"**Purpose:** {purpose}" if purpose else "**Purpose:** (not yet defined - suggest starting here)")

    customer = "\n".join(_line(SECTION_LABELS[key], canvas.section_content(key)) for key in CUSTOMER_SECTIONS)
    parts.append(f"\n**Customer Model:**\n{customer}")

    economic = "\n".join(_line(SECTION_LABELS[key], canvas.section_content(key)) for key in ECONOMIC_SECTIONS)
    parts.append(f"\n**Economic Model:**\n{economic}")

    chain = canvas.impact_model
    impact = "\n".join(_line(IMPACT_FIELD_LABELS[key], chain.get_field(key)) for key in IMPACT_FIELDS)
    parts.append(f"\n**Impact Model:**\n{impact}")

    metrics = canvas.section_content("keyMetrics")
    parts.append(
        f"\n**Key Metrics:** {metrics}" if metrics else "\n**Key Metrics:** (complete after other sections)"
    )

    return "\n".join(parts)


def build_system_prompt(canvas: CanvasState, rag_context: str = "", tone: str = DEFAULT_TONE_PROFILE) -> str:
    """Full system prompt for one turn.

    Args:
        canvas: Current canvas state
        rag_context: Retrieved knowledge formatted by ``build_rag_context``
        tone: Tone profile id ("beginner" or "experienced")
    """
    prompt = load_prompt_template().replace("{canvas_context}", format_canvas_context(canvas))
    if rag_context:
        prompt += (
            "\n## Relevant Knowledge\n"
            "Use these excerpts when they help; cite the venture or method by name.\n\n"
            f"{rag_context}\n"
        )
    return prompt + "\n\n" + build_tone_modifier(tone)
