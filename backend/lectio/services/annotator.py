"""
Response annotation: structured metadata from free-text model replies.

The model is asked to write references as [Book Chapter:Verse] but nothing
guarantees it does, so every reply is scanned here for citations, topics,
cross-references and citable sources. Everything is best-effort and table
driven; see ``lectio.data`` for the lookup tables.
"""

import re
from dataclasses import dataclass, field
from typing import Any

from lectio.data.books import (
    BOOK_ABBREVIATIONS,
    BOOK_ALIASES,
    BOOK_SET,
    CANONICAL_BOOKS,
    PASSAGE_URL_TEMPLATE,
)
from lectio.data.theology import (
    CROSS_REFERENCES,
    GENERAL_RESOURCES,
    THEOLOGICAL_TERMS,
    TOPIC_SOURCES,
    CitableSource,
)

# Placeholder; not derived from any signal
DEFAULT_CONFIDENCE = 0.8

# Longest names first so "1 John" wins over "John" and "Psalms" over "Psalm"
_BOOKS = "|".join(re.escape(book) for book in sorted(CANONICAL_BOOKS, key=len, reverse=True))

# Scanned in priority order; earlier families decide first-seen order
CITATION_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(rf"\[({_BOOKS})\s+(\d+):(\d+)\]"),
    re.compile(rf"\*\*({_BOOKS})\s+(\d+):(\d+)\*\*"),
    re.compile(rf"(?<![A-Za-z0-9])({_BOOKS})\s+(\d+):(\d+)"),
    re.compile(rf"(?<![A-Za-z0-9])({_BOOKS})\s+(\d+):(\d+)-(\d+)"),
)


@dataclass(frozen=True)
class Citation:
    """A normalized verse reference."""

    book: str
    chapter: int
    verse: int
    version: str

    @property
    def reference(self) -> str:
        return f"{self.book} {self.chapter}:{self.verse}"

    @property
    def url(self) -> str:
        return PASSAGE_URL_TEMPLATE.format(
            abbr=BOOK_ABBREVIATIONS.get(self.book, self.book).replace(" ", "+"),
            chapter=self.chapter,
            verse=self.verse,
            version=self.version,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "book": self.book,
            "chapter": self.chapter,
            "verse": self.verse,
            "version": self.version,
            "fullReference": self.reference,
            "url": self.url,
        }


@dataclass
class CitableSources:
    """Source labels plus their full records, most relevant first."""

    sources: list[str] = field(default_factory=list)
    detailed_sources: list[dict[str, Any]] = field(default_factory=list)


@dataclass
class Annotation:
    """Everything extracted from one reply."""

    citations: list[Citation] = field(default_factory=list)
    topics: list[str] = field(default_factory=list)
    cross_references: list[str] = field(default_factory=list)
    sources: CitableSources = field(default_factory=CitableSources)
    confidence: float = DEFAULT_CONFIDENCE

    def as_metadata(self) -> dict[str, Any]:
        """Shape stored on ChatMessage.metadata and returned to clients."""
        return {
            "versesCited": [citation.reference for citation in self.citations],
            "detailedVerses": [citation.to_dict() for citation in self.citations],
            "theologicalTopics": list(self.topics),
            "crossReferences": list(self.cross_references),
            "sourcesCited": list(self.sources.sources),
            "detailedSources": list(self.sources.detailed_sources),
            "confidence": self.confidence,
        }


def extract_citations(text: str, version: str = "ESV") -> list[Citation]:
    """Find verse references, de-duplicated on (book, chapter, verse) in first-seen order."""
    seen: set[tuple[str, int, int]] = set()
    citations: list[Citation] = []

    for pattern in CITATION_PATTERNS:
        for match in pattern.finditer(text):
            book = match.group(1).strip()
            chapter = int(match.group(2))
            verse = int(match.group(3))
            if book not in BOOK_SET or chapter <= 0 or verse <= 0:
                continue
            book = BOOK_ALIASES.get(book, book)
            key = (book, chapter, verse)
            if key in seen:
                continue
            seen.add(key)
            citations.append(Citation(book=book, chapter=chapter, verse=verse, version=version))

    return citations


def extract_topics(text: str) -> list[str]:
    """Vocabulary terms that occur anywhere in the text (case-insensitive)."""
    lowered = text.lower()
    return [term for term in THEOLOGICAL_TERMS if term in lowered]


def find_cross_references(references: list[str]) -> list[str]:
    """Union of known related verses for each reference."""
    related: dict[str, None] = {}
    for reference in references:
        for target in CROSS_REFERENCES.get(reference, ()):
            related[target] = None
    return list(related)


def get_citable_sources(topics: list[str]) -> CitableSources:
    """
    Sources for the given topics plus the general resources.

    De-duplicated by (title, author) and sorted by relevance, highest first.
    Ties keep topic order.
    """
    merged: dict[tuple[str, str], CitableSource] = {}
    candidates = [source for topic in topics for source in TOPIC_SOURCES.get(topic.lower(), ())]
    candidates.extend(GENERAL_RESOURCES)

    for source in candidates:
        merged.setdefault((source.title, source.author), source)

    ranked = sorted(merged.values(), key=lambda source: source.relevance, reverse=True)
    return CitableSources(
        sources=[source.label for source in ranked],
        detailed_sources=[source.to_dict() for source in ranked],
    )


def annotate(raw_text: str, version: str = "ESV") -> Annotation:
    """Run every extractor over a model reply."""
    citations = extract_citations(raw_text, version)
    topics = extract_topics(raw_text)
    return Annotation(
        citations=citations,
        topics=topics,
        cross_references=find_cross_references([citation.reference for citation in citations]),
        sources=get_citable_sources(topics),
    )


def format_content(raw_text: str) -> dict[str, Any]:
    """
    Split markdown into render blocks for the frontend.

    A heading followed by text becomes one "section" block; a heading with
    nothing under it stays a "heading" block; text before the first heading
    is a "paragraph" block.
    """
    sections: list[dict[str, Any]] = []
    current: dict[str, Any] | None = None

    for line in raw_text.split("\n"):
        if line.startswith("#"):
            if current:
                sections.append(current)
            level = len(line) - len(line.lstrip("#"))
            current = {
                "type": "heading",
                "content": line.lstrip("#").strip(),
                "metadata": {"level": level},
            }
        elif line.strip():
            if current is None:
                current = {"type": "paragraph", "content": line, "metadata": {}}
            elif current["type"] == "heading":
                current = {
                    "type": "section",
                    "content": line,
                    "metadata": {"heading": current["content"], **current["metadata"]},
                }
            else:
                current["content"] += "\n" + line

    if current:
        sections.append(current)

    return {"text": raw_text, "format": "markdown", "sections": sections}
