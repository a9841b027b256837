"""Theological vocabulary, cross-references and citable sources.

Plain lookup tables. The annotator and the insight extractor read them; nothing
here has behavior beyond shaping the data.
"""

from dataclasses import asdict, dataclass
from typing import Any, Literal

SourceType = Literal["book", "commentary", "study_bible", "online_resource"]


# =============================================================================
# VOCABULARY
# =============================================================================

# Grouped by theme; matched as lowercase substrings.
THEOLOGY_VOCABULARY: dict[str, tuple[str, ...]] = {
    "core": (
        "salvation",
        "grace",
        "faith",
        "justification",
        "sanctification",
        "trinity",
        "incarnation",
        "atonement",
        "resurrection",
        "eschatology",
        "baptism",
        "communion",
        "church",
        "ministry",
        "worship",
    ),
    "church_and_sacraments": (
        "church",
        "ekklesia",
        "body of christ",
        "ministry",
        "apostles",
        "discipleship",
        "ordination",
        "baptism",
        "communion",
        "eucharist",
        "sacrament",
        "confirmation",
        "confession",
        "liturgy",
        "worship",
        "prayer",
        "fellowship",
        "mission",
        "evangelism",
    ),
    "christology": (
        "christology",
        "messiah",
        "son of god",
        "lord",
        "redeemer",
        "savior",
        "logos",
        "hypostatic union",
        "kenosis",
        "christ",
        "immanuel",
    ),
    "pneumatology": (
        "pneumatology",
        "holy spirit",
        "spiritual gifts",
        "tongues",
        "fruit of the spirit",
        "conviction",
        "baptism of the spirit",
    ),
    "soteriology": (
        "soteriology",
        "election",
        "predestination",
        "atonement",
        "propitiation",
        "reconciliation",
        "faith",
        "grace",
        "repentance",
        "new birth",
        "regeneration",
    ),
    "old_testament": (
        "law of moses",
        "tabernacle",
        "temple",
        "priesthood",
        "sacrifice",
        "israel",
        "covenant",
        "abrahamic covenant",
        "mosaic covenant",
        "davidic covenant",
        "prophet",
        "torah",
        "psalms",
    ),
    "apologetics": (
        "apologetics",
        "theodicy",
        "free will",
        "determinism",
        "omniscience",
        "omnipotence",
        "omnibenevolence",
        "metaphysics",
        "ontology",
        "ethics",
        "epistemology",
        "existence of god",
    ),
    "interfaith": (
        "judaism",
        "islam",
        "hinduism",
        "buddhism",
        "paganism",
        "gnosticism",
        "heresy",
        "orthodoxy",
        "catholicism",
        "protestantism",
        "eastern orthodoxy",
        "ecumenism",
    ),
    "church_history": (
        "augustine",
        "aquinas",
        "calvin",
        "luther",
        "reformation",
        "council of nicaea",
        "creed",
        "apostles creed",
        "nicene creed",
        "westminster confession",
        "scholasticism",
        "church fathers",
        "patristics",
    ),
    "ethics": (
        "morality",
        "virtue",
        "vice",
        "charity",
        "humility",
        "obedience",
        "justice",
        "mercy",
        "love",
        "truth",
        "righteous living",
        "beatitudes",
        "commandments",
        "sermon on the mount",
    ),
    "spiritual_disciplines": (
        "discipleship",
        "prayer",
        "fasting",
        "meditation",
        "scripture reading",
        "devotion",
        "pilgrimage",
        "confession",
        "sabbath",
        "spiritual warfare",
    ),
    "theological_method": (
        "biblical theology",
        "systematic theology",
        "practical theology",
        "historical theology",
        "dogmatics",
        "ethics",
        "philosophical theology",
        "comparative theology",
    ),
    "doctrine": (
        "god",
        "jesus",
        "holy spirit",
        "trinity",
        "incarnation",
        "atonement",
        "resurrection",
        "ascension",
        "salvation",
        "justification",
        "sanctification",
        "redemption",
        "regeneration",
        "grace",
        "faith",
        "repentance",
        "sin",
        "forgiveness",
        "righteousness",
        "holiness",
        "covenant",
        "law",
        "gospel",
        "creation",
        "fall",
        "original sin",
        "image of god",
    ),
    "eschatology": (
        "eschatology",
        "second coming",
        "rapture",
        "judgment",
        "heaven",
        "hell",
        "new earth",
        "millennium",
        "antichrist",
        "apocalypse",
        "revelation",
        "tribulation",
        "kingdom of god",
    ),
    "scripture": (
        "bible",
        "scripture",
        "canon",
        "revelation",
        "inspiration",
        "illumination",
        "hermeneutics",
        "exegesis",
        "interpretation",
        "prophecy",
        "logos",
        "word of god",
    ),
}

# Flattened, first occurrence wins
THEOLOGICAL_TERMS: tuple[str, ...] = tuple(
    dict.fromkeys(term for group in THEOLOGY_VOCABULARY.values() for term in group)
)


# =============================================================================
# CROSS-REFERENCES
# =============================================================================

CROSS_REFERENCES: dict[str, tuple[str, ...]] = {
    "John 3:16": ("Romans 5:8", "1 John 4:9", "Ephesians 2:8-9", "Titus 3:5"),
    "Romans 8:28": ("Genesis 50:20", "Jeremiah 29:11", "Philippians 1:6", "2 Corinthians 4:17"),
    "Matthew 6:9": ("Luke 11:2", "Matthew 6:10-13", "Luke 11:1-4"),
    "Genesis 1:1": ("John 1:1", "Hebrews 11:3", "Psalms 33:6", "Colossians 1:16"),
    "Ephesians 2:8": ("Romans 3:24", "Titus 3:5", "Galatians 2:16"),
    "Romans 3:23": ("Romans 6:23", "1 John 1:8", "Isaiah 53:6"),
}


# =============================================================================
# SOURCES
# =============================================================================


@dataclass(frozen=True)
class CitableSource:
    """Bibliographic record attached to a topic."""

    title: str
    author: str
    type: SourceType
    description: str
    relevance: float
    url: str | None = None
    publisher: str | None = None
    year: int | None = None
    isbn: str | None = None

    @property
    def label(self) -> str:
        return f"{self.title} by {self.author}"

    def to_dict(self) -> dict[str, Any]:
        return {key: value for key, value in asdict(self).items() if value is not None}


_GRUDEM = CitableSource(
    title="Systematic Theology",
    author="Wayne Grudem",
    type="book",
    description="Evangelical survey of Christian doctrine organized by topic.",
    relevance=0.9,
    publisher="Zondervan",
    year=1994,
)

TOPIC_SOURCES: dict[str, tuple[CitableSource, ...]] = {
    "salvation": (
        _GRUDEM,
        CitableSource(
            title="Institutes of the Christian Religion",
            author="John Calvin",
            type="book",
            description="Reformation-era systematic treatment of salvation and grace.",
            relevance=0.85,
            year=1536,
        ),
        CitableSource(
            title="Christian Theology",
            author="Millard Erickson",
            type="book",
            description="Broad evangelical theology with chapters on soteriology.",
            relevance=0.8,
            publisher="Baker Academic",
            year=1983,
        ),
    ),
    "grace": (
        CitableSource(
            title="What Is Reformed Theology?",
            author="R.C. Sproul",
            type="book",
            description="Introduction to the doctrines of grace.",
            relevance=0.8,
            publisher="Baker Books",
            year=1997,
        ),
        CitableSource(
            title="Systematic Theology",
            author="Louis Berkhof",
            type="book",
            description="Classic Reformed systematic theology.",
            relevance=0.75,
            publisher="Eerdmans",
            year=1938,
        ),
    ),
    "faith": (
        _GRUDEM,
        CitableSource(
            title="Faith Alone",
            author="R.C. Sproul",
            type="book",
            description="Defense of justification by faith.",
            relevance=0.8,
            publisher="Baker Books",
            year=1995,
        ),
        CitableSource(
            title="The Christian Faith",
            author="Friedrich Schleiermacher",
            type="book",
            description="Nineteenth-century account of faith and religious experience.",
            relevance=0.6,
            year=1821,
        ),
    ),
    "trinity": (
        _GRUDEM,
        CitableSource(
            title="The Trinity",
            author="Augustine of Hippo",
            type="book",
            description="Foundational patristic reflection on the triune God.",
            relevance=0.85,
        ),
        CitableSource(
            title="The Forgotten Trinity",
            author="James White",
            type="book",
            description="Accessible biblical case for the doctrine of the Trinity.",
            relevance=0.75,
            publisher="Bethany House",
            year=1998,
        ),
    ),
    "church": (
        _GRUDEM,
        CitableSource(
            title="The Church",
            author="Edmund Clowney",
            type="book",
            description="Biblical theology of the church.",
            relevance=0.8,
            publisher="IVP Academic",
            year=1995,
        ),
    ),
    "resurrection": (
        CitableSource(
            title="The Resurrection of the Son of God",
            author="N.T. Wright",
            type="book",
            description="Historical study of early Christian belief in the resurrection.",
            relevance=0.85,
            publisher="Fortress Press",
            year=2003,
        ),
    ),
}

# Appended to every source list
GENERAL_RESOURCES: tuple[CitableSource, ...] = (
    CitableSource(
        title="ESV Study Bible",
        author="Crossway",
        type="study_bible",
        description="Study notes, maps and articles alongside the ESV text.",
        relevance=0.7,
        publisher="Crossway",
        year=2008,
    ),
    CitableSource(
        title="Bible Gateway",
        author="Bible Gateway",
        type="online_resource",
        description="Searchable Bible text in many translations.",
        relevance=0.6,
        url="https://www.biblegateway.com",
    ),
    CitableSource(
        title="Blue Letter Bible",
        author="Blue Letter Bible",
        type="online_resource",
        description="Interlinear text, lexicons and commentaries.",
        relevance=0.55,
        url="https://www.blueletterbible.org",
    ),
)
