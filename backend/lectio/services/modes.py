"""Assistant modes and their prompt overlays."""

import logging
from dataclasses import dataclass, field
from pathlib import Path

from lectio.db.models import ChatMode

logger = logging.getLogger(__name__)

PROMPTS_DIR = Path(__file__).parent.parent / "prompts"


def load_prompt(name: str, fallback: str) -> str:
    """Load a prompt markdown file shipped with the package."""
    prompt_path = PROMPTS_DIR / f"{name}.md"
    try:
        return prompt_path.read_text(encoding="utf-8").strip()
    except FileNotFoundError:
        logger.warning("Prompt %s not found at %s, using fallback", name, prompt_path)
        return fallback


@dataclass(frozen=True)
class ModeProfile:
    """Persona metadata plus the overlay appended to the base prompt."""

    mode: ChatMode
    name: str
    description: str
    personality: str
    capabilities: tuple[str, ...] = field(default_factory=tuple)
    overlay: str = ""


# Load once at module import
BASE_PROMPT = load_prompt(
    "base",
    "You are a biblical scholar. Ground every answer in Scripture and write "
    "references as [Book Chapter:Verse].",
)

MODE_PROFILES: dict[ChatMode, ModeProfile] = {
    ChatMode.STUDY: ModeProfile(
        mode=ChatMode.STUDY,
        name="Study AI",
        description="Deep theological analysis with original language insights",
        personality="Scholarly, thorough, academically rigorous",
        capabilities=(
            "Original language analysis (Hebrew/Greek)",
            "Historical and cultural context",
            "Theological depth and systematic theology",
            "Extensive cross-referencing",
            "Scholarly source citations",
            "Critical analysis of interpretations",
        ),
        overlay=load_prompt("study", "You are a **Study AI**."),
    ),
    ChatMode.DEBATE: ModeProfile(
        mode=ChatMode.DEBATE,
        name="Debate AI",
        description="Structured argumentation with multiple theological perspectives",
        personality="Analytical, fair, logically rigorous",
        capabilities=(
            "Logical argumentation and reasoning",
            "Multiple perspective presentation",
            "Critical thinking and analysis",
            "Evidence evaluation",
            "Structured debate organization",
            "Counterargument development",
        ),
        overlay=load_prompt("debate", "You are a **Debate AI**."),
    ),
    ChatMode.NOTE_TAKER: ModeProfile(
        mode=ChatMode.NOTE_TAKER,
        name="Note-Taker AI",
        description="Study organization and note-taking assistance",
        personality="Organized, methodical, supportive",
        capabilities=(
            "Study organization and structure",
            "Note-taking strategy development",
            "Outline and template creation",
            "Study planning and scheduling",
            "Progress tracking systems",
            "Resource organization",
        ),
        overlay=load_prompt("note-taker", "You are a **Note-Taker AI**."),
    ),
    ChatMode.EXPLAINER: ModeProfile(
        mode=ChatMode.EXPLAINER,
        name="Explainer AI",
        description="Clear, accessible explanations of biblical concepts",
        personality="Patient, encouraging, clear communicator",
        capabilities=(
            "Clear concept explanation",
            "Cross-reference discovery",
            "Historical context provision",
            "Practical application guidance",
            "Analogy and illustration creation",
            "Progressive learning support",
        ),
        overlay=load_prompt("explainer", "You are an **Explainer AI**."),
    ),
    ChatMode.CUSTOM: ModeProfile(
        mode=ChatMode.CUSTOM,
        name="Custom AI",
        description="Adapts to the user's specific needs and preferences",
        personality="Flexible, responsive",
        overlay=load_prompt(
            "custom",
            "You are a **Custom AI** - adaptable to the user's specific needs and preferences.",
        ),
    ),
}


def resolve_mode(mode: str | ChatMode) -> ChatMode:
    """Map a stored mode string to the enum; anything unknown becomes custom."""
    try:
        return ChatMode(mode)
    except ValueError:
        return ChatMode.CUSTOM


def get_mode_profile(mode: str | ChatMode) -> ModeProfile:
    return MODE_PROFILES[resolve_mode(mode)]
