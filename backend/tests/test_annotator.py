"""Tests for reply annotation and render blocks."""

from lectio.services.annotator import (
    Annotation,
    annotate,
    extract_citations,
    extract_topics,
    find_cross_references,
    format_content,
    get_citable_sources,
)


class TestExtractCitations:
    def test_bracketed_reference(self):
        citations = extract_citations("Read [John 3:16] today.", "NIV")

        assert [c.reference for c in citations] == ["John 3:16"]
        assert citations[0].version == "NIV"
        assert citations[0].url == (
            "https://www.biblegateway.com/passage/?search=John+3%3A16&version=NIV"
        )

    def test_bold_and_bare_references_are_found(self):
        text = "See **Romans 5:8** and also Genesis 1:1 for context."

        references = [c.reference for c in extract_citations(text)]

        assert references == ["Romans 5:8", "Genesis 1:1"]

    def test_duplicates_across_formats_are_collapsed(self):
        text = "[John 3:16] is famous. John 3:16 again, and **John 3:16** once more."

        assert len(extract_citations(text)) == 1

    def test_numbered_book_is_not_split(self):
        references = [c.reference for c in extract_citations("Compare [1 John 4:9].")]

        assert references == ["1 John 4:9"]

    def test_range_keeps_first_verse(self):
        citations = extract_citations("Read Ephesians 2:8-9 slowly.")

        assert [(c.book, c.chapter, c.verse) for c in citations] == [("Ephesians", 2, 8)]

    def test_unknown_book_and_zero_verse_are_ignored(self):
        assert extract_citations("[Hezekiah 3:16] and [John 0:1] and Mark 3:0") == []

    def test_word_suffix_is_not_a_book(self):
        assert extract_citations("The Markdown 3:16 header") == []

    def test_singular_psalm_is_the_same_book(self):
        citations = extract_citations("Psalm 23:1 says it, and [Psalms 23:1] repeats it.")

        assert [c.reference for c in citations] == ["Psalms 23:1"]

    def test_to_dict_shape(self):
        (citation,) = extract_citations("[Psalm 23:1]", "ESV")

        assert citation.to_dict() == {
            "book": "Psalms",
            "chapter": 23,
            "verse": 1,
            "version": "ESV",
            "fullReference": "Psalms 23:1",
            "url": "https://www.biblegateway.com/passage/?search=Ps+23%3A1&version=ESV",
        }


class TestTopicsAndReferences:
    def test_topics_are_case_insensitive(self):
        topics = extract_topics("GRACE and Faith are gifts.")

        assert "grace" in topics
        assert "faith" in topics

    def test_no_topics(self):
        assert extract_topics("12345") == []

    def test_cross_references_union_without_duplicates(self):
        related = find_cross_references(["John 3:16", "Ephesians 2:8"])

        assert related.count("Titus 3:5") == 1
        assert related[:4] == ["Romans 5:8", "1 John 4:9", "Ephesians 2:8-9", "Titus 3:5"]
        assert "Galatians 2:16" in related

    def test_unknown_reference_has_no_cross_references(self):
        assert find_cross_references(["Obadiah 1:1"]) == []


class TestCitableSources:
    def test_general_resources_always_included(self):
        sources = get_citable_sources([])

        assert sources.sources == [
            "ESV Study Bible by Crossway",
            "Bible Gateway by Bible Gateway",
            "Blue Letter Bible by Blue Letter Bible",
        ]

    def test_sorted_by_relevance_descending(self):
        sources = get_citable_sources(["grace"])
        relevances = [source["relevance"] for source in sources.detailed_sources]

        assert relevances == sorted(relevances, reverse=True)
        assert sources.sources[0] == "What Is Reformed Theology? by R.C. Sproul"

    def test_shared_source_listed_once(self):
        sources = get_citable_sources(["salvation", "faith", "trinity"])

        assert sources.sources.count("Systematic Theology by Wayne Grudem") == 1

    def test_detailed_sources_drop_missing_fields(self):
        sources = get_citable_sources(["trinity"])
        augustine = next(s for s in sources.detailed_sources if s["author"] == "Augustine of Hippo")

        assert "publisher" not in augustine
        assert "year" not in augustine


class TestAnnotate:
    def test_metadata_keys(self):
        metadata = annotate("Grace abounds. [Romans 3:23]", "KJV").as_metadata()

        assert metadata["versesCited"] == ["Romans 3:23"]
        assert metadata["detailedVerses"][0]["version"] == "KJV"
        assert "grace" in metadata["theologicalTopics"]
        assert "Romans 6:23" in metadata["crossReferences"]
        assert metadata["sourcesCited"]
        assert metadata["confidence"] == 0.8

    def test_empty_text(self):
        metadata = annotate("", "ESV").as_metadata()

        assert metadata["versesCited"] == []
        assert metadata["theologicalTopics"] == []
        assert len(metadata["sourcesCited"]) == 3

    def test_empty_annotation(self):
        assert Annotation().as_metadata()["detailedSources"] == []


class TestFormatContent:
    def test_sections(self):
        text = "Intro line\n# Heading\nBody one\n\nBody two\n## Empty"

        formatted = format_content(text)

        assert formatted["text"] == text
        assert formatted["format"] == "markdown"
        assert formatted["sections"] == [
            {"type": "paragraph", "content": "Intro line", "metadata": {}},
            {
                "type": "section",
                "content": "Body one\nBody two",
                "metadata": {"heading": "Heading", "level": 1},
            },
            {"type": "heading", "content": "Empty", "metadata": {"level": 2}},
        ]

    def test_plain_text_is_one_paragraph(self):
        formatted = format_content("one\ntwo")

        assert formatted["sections"] == [{"type": "paragraph", "content": "one\ntwo", "metadata": {}}]

    def test_blank_text_has_no_sections(self):
        assert format_content("\n\n")["sections"] == []
