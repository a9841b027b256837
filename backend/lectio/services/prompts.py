"""
System prompt composition.

Everything here is pure: the same mode and context always render the same
text, section order included.
"""

from typing import Any

from lectio.db.models import ChatMode
from lectio.services.context import UserContext
from lectio.services.modes import BASE_PROMPT, get_mode_profile

NOTE_PREVIEW_CHARS = 100
RECENT_ITEMS = 5
RECENT_ACHIEVEMENTS = 3

INSTRUCTIONS = (
    "Use the user's context to provide personalized, relevant responses. "
    "Reference their notes, highlights, and reading progress when appropriate."
)

VERSE_FORMAT_REQUIREMENT = """\
- ALL Bible verse references MUST be formatted as [Book Chapter:Verse] (e.g., [John 3:16], [Romans 5:8])
- When mentioning any Bible verse, always include the full reference in square brackets
- This ensures the frontend can properly display clickable verse links with detailed metadata"""

GREETING_SYSTEM_PROMPT = """\
You are a helpful biblical AI assistant. Generate a warm, personalized greeting that:
1. Welcomes the user to their chat session
2. Mentions the assistant's specialty for this session
3. References what they are reading, if known
4. Offers specific ways you can help
5. Keeps it concise but encouraging

Write any Bible verse reference as [Book Chapter:Verse]."""


def compose_system_prompt(mode: str | ChatMode, context: UserContext) -> str:
    """Base persona, mode overlay, rendered user context and formatting rules."""
    profile = get_mode_profile(mode)
    return f"""{BASE_PROMPT}

{profile.overlay}

## Current User Context
{render_context(context)}

## Instructions
{INSTRUCTIONS}

## CRITICAL VERSE FORMATTING REQUIREMENT
{VERSE_FORMAT_REQUIREMENT}"""


def flatten_note_content(content: Any) -> str:
    """Plain text of a rich-text document (nested ``{"text": ...}`` nodes)."""
    if content is None:
        return ""
    if isinstance(content, str):
        return content
    parts: list[str] = []

    def _walk(node: Any) -> None:
        if isinstance(node, dict):
            text = node.get("text")
            if isinstance(text, str):
                parts.append(text)
            for child in node.get("content") or []:
                _walk(child)
        elif isinstance(node, list):
            for child in node:
                _walk(child)

    _walk(content)
    return " ".join(part.strip() for part in parts if part.strip())


def _note_preview(content: Any) -> str:
    text = flatten_note_content(content)
    if not text:
        return "No content"
    return text[:NOTE_PREVIEW_CHARS] + "..."


def render_context(context: UserContext) -> str:
    """
    Summarize a ``UserContext`` as markdown.

    Sections appear in a fixed order and are skipped when empty; the
    current-reading line is always present.
    """
    sections: list[str] = []
    profile = context.profile
    display_name = (profile.first_name if profile else None) or "The user"

    if profile:
        sections.append(
            "## PERSONAL CONTEXT\n"
            f"You are speaking with {profile.first_name} {profile.last_name} (@{profile.username}).\n"
        )

    chapter = context.current_chapter if context.current_chapter is not None else ""
    sections.append(
        "### Current Reading\n"
        f"{display_name} is currently reading {context.current_book or 'Not specified'} {chapter} "
        f"in the {context.current_version or 'Not specified'} version.\n"
    )

    plan = context.reading_plan
    if plan and plan.enabled:
        sections.append(
            "### Reading Plan\n"
            f"{display_name} is on day {plan.current_day} of a {plan.plan_duration}-day reading plan. "
            f"They have completed {plan.completed_days} days so far.\n"
        )

    stats = context.reading_stats
    if stats:
        sections.append(
            "### Reading Progress\n"
            f"- Current level: {stats.current_level}\n"
            f"- Reading streak: {stats.current_streak} days\n"
            f"- Total chapters read: {stats.total_chapters_read}\n"
            f"- Achievements unlocked: {stats.total_achievements_unlocked}\n"
        )

    settings = context.reading_settings
    if settings:
        audio = "Auto-play enabled" if settings.auto_play_audio else "Manual control"
        sections.append(
            "### Study Preferences\n"
            f"- Preferred Bible version: {settings.preferred_version_abbreviation or 'Not specified'}\n"
            f"- Audio settings: {audio}\n"
            f"- Display: {settings.font_size} font, {settings.reading_mode} mode\n"
        )

    if context.notes:
        lines = [f"### Recent Notes ({len(context.notes)}):"]
        lines += [
            f"- {note.title}: {_note_preview(note.content)}"
            for note in context.notes[:RECENT_ITEMS]
        ]
        sections.append("\n".join(lines) + "\n")

    if context.highlights:
        lines = [f"### Recent Highlights ({len(context.highlights)}):"]
        lines += [
            f"- {h.book_id} {h.chapter}:{h.verse_number} ({h.color})"
            for h in context.highlights[:RECENT_ITEMS]
        ]
        sections.append("\n".join(lines) + "\n")

    if context.bookmarks:
        lines = [f"### Recent Bookmarks ({len(context.bookmarks)}):"]
        lines += [
            f"- {b.book_name} {b.chapter}:{b.verse_number}" for b in context.bookmarks[:RECENT_ITEMS]
        ]
        sections.append("\n".join(lines) + "\n")

    if context.loved_verses:
        lines = [f"### Loved Verses ({len(context.loved_verses)}):"]
        lines += [
            f"- {v.book_name} {v.chapter}:{v.verse_number}"
            for v in context.loved_verses[:RECENT_ITEMS]
        ]
        sections.append("\n".join(lines) + "\n")

    if context.learning_profile:
        lines = ["### AI Learning Profile:"]
        lines += [
            f"- {entry.category}: {entry.insight_key} = {entry.insight_value} "
            f"(confidence: {entry.confidence_score})"
            for entry in context.learning_profile
        ]
        sections.append("\n".join(lines) + "\n")

    if context.achievements:
        lines = [f"### Recent Achievements ({len(context.achievements)}):"]
        lines += [
            f"- {ua.achievement.name if ua.achievement else 'Achievement'}"
            for ua in context.achievements[:RECENT_ACHIEVEMENTS]
        ]
        sections.append("\n".join(lines) + "\n")

    return "\n".join(sections)


def build_greeting_prompt(
    mode: str | ChatMode,
    book: str | None = None,
    chapter: int | None = None,
    version: str | None = None,
) -> str:
    """User turn asking the model for a session's opening message."""
    profile = get_mode_profile(mode)
    prompt = f"Generate a personalized greeting for a {profile.mode.value} AI chat session."
    if book and chapter:
        prompt += f" The user is currently reading {book} chapter {chapter}"
        if version:
            prompt += f" in the {version} version"
        prompt += ". Ask if they need help with this specific reading."
    else:
        prompt += " Welcome them and ask how you can help with their biblical study."
    return prompt
