"""Word lists and patterns shared by the analyzer, validator and scorer."""

from __future__ import annotations

import re

WORD_PATTERN = re.compile(r"[^\W_]+(?:['’][^\W_]+)?", flags=re.UNICODE)
SENTENCE_SPLIT = re.compile(r"[.!?]+")

# Vague term -> concrete replacement offered to the user.
VAGUE_REPLACEMENTS: dict[str, str] = {
    "bonito": "well-formatted",
    "bonita": "professional",
    "bueno": "high-quality",
    "buena": "high-quality",
    "malo": "problematic",
    "good": "effective",
    "bad": "ineffective",
    "nice": "well-designed",
    "thing": "element",
    "things": "elements",
    "stuff": "components",
    "something": "a specific element",
    "some": "specific",
    "many": "multiple",
}

VAGUE_TERMS = frozenset(
    set(VAGUE_REPLACEMENTS)
    | {"anything", "big", "small", "fast", "slow", "easy", "hard", "cool"}
)

ACTION_VERBS = frozenset(
    {
        "create", "generate", "make", "build", "write", "develop", "design",
        "analyze", "review", "evaluate", "check", "examine", "update", "modify",
        "change", "improve", "optimize", "explain", "describe", "show",
        "demonstrate", "list", "find", "implement", "configure", "deploy",
        "refactor", "fix", "debug", "summarize", "compare", "define", "draft",
        # query verbs
        "select", "insert", "delete", "join", "query", "migrate",
        # spanish imperatives
        "hazme", "dame", "crea", "genera", "escribe", "diseña", "necesito", "quiero",
    }
)

DOMAIN_NOUNS = frozenset(
    {
        "table", "tabla", "query", "database", "schema", "index", "column",
        "brand", "marca", "logo", "campaign", "audience", "slogan",
        "script", "guion", "scene", "escena", "character", "film", "movie",
        "feature", "dashboard", "api", "platform", "subscription", "app",
        "pipeline", "deployment", "server", "cluster", "container", "infrastructure",
        "function", "component", "module", "endpoint", "service", "report",
    }
)

STOP_WORDS = frozenset(
    {
        "a", "an", "and", "are", "as", "at", "be", "by", "for", "from", "has",
        "he", "in", "is", "it", "its", "of", "on", "that", "the", "to", "was",
        "will", "with", "this", "these", "those", "there", "their", "what",
        "el", "la", "los", "las", "de", "en", "un", "una", "que", "con", "para",
    }
)

INDEFINITE_PRONOUNS = frozenset({"it", "this", "that", "these", "those", "they"})
MODAL_VERBS = frozenset({"might", "could", "should", "would", "may"})
HEDGE_WORDS = frozenset({"probably", "maybe", "perhaps", "possibly", "somewhat"})

SPANISH_MARKERS = re.compile(
    r"\b(el|la|los|las|un|una|de|del|en|con|por|para|que|es|son|esta|muy|"
    r"bonit[oa]s?|buen[oa]s?|malo|necesito|quiero|hazme|dame)\b",
    flags=re.IGNORECASE,
)
ENGLISH_MARKERS = re.compile(
    r"\b(the|a|an|and|or|but|in|on|at|to|for|of|with|by|is|are|was|were|"
    r"good|bad|nice|need|want)\b",
    flags=re.IGNORECASE,
)

OFFENSIVE_PATTERN = re.compile(r"\b(hate|kill|destroy|attack|harm)\s+\w+\b", flags=re.IGNORECASE)
CONSTRAINT_PATTERN = re.compile(
    r"\b(must|should|require[sd]?|need(?:s|ed)?|constraints?|limit(?:s|ed)?|within|"
    r"where|only|at least|at most|no more than)\b",
    flags=re.IGNORECASE,
)
DETAIL_PATTERN = re.compile(r"\d+|\b(specific|particular|exact|precise)\b", flags=re.IGNORECASE)
GENERIC_PATTERN = re.compile(r"\b(generic|general|basic|simple|standard)\b", flags=re.IGNORECASE)
FLOW_PATTERN = re.compile(
    r"\b(then|next|after|before|because|so|therefore|however|first|finally)\b",
    flags=re.IGNORECASE,
)
OUTPUT_PATTERN = re.compile(r"\b(output|result|return|format|should|expect(?:ed)?)\b", flags=re.IGNORECASE)
DELIVERABLE_PATTERN = re.compile(r"\b(deliver|provide|create|generate|produce|build)\b", flags=re.IGNORECASE)
MEASURABLE_PATTERN = re.compile(r"\d+|\b(measure|metric|criteria|success|complete)\b", flags=re.IGNORECASE)
ABSTRACT_PATTERN = re.compile(r"\b(concept|idea|notion|abstract|theoretical)\b", flags=re.IGNORECASE)
CONFLICT_PATTERN = re.compile(r"\b(simple\b.*\bcomplex|fast\b.*\bslow|big\b.*\bsmall)\b", flags=re.IGNORECASE)
USER_STORY_PATTERN = re.compile(
    r"\b(as an?|como)\b.+\b(i want|i need|quiero|necesito)\b", flags=re.IGNORECASE
)
EXAMPLE_PATTERN = re.compile(r"\b(example|for instance|e\.g\.|such as|like)\b", flags=re.IGNORECASE)
SECTION_PATTERN = re.compile(r"^\s*(?:[-*•]|\d+[.)]|#+)\s+", flags=re.MULTILINE)
REQUIREMENT_PATTERN = re.compile(
    r"\b(must|should|require[sd]?|requirements?|needs?|constraints?|specifications?)\b", flags=re.IGNORECASE
)
EXPECTED_OUTPUT_PATTERN = re.compile(
    r"\b(output|result|return|format|deliver|produce|generate|provide)\b", flags=re.IGNORECASE
)
DEMONSTRATION_PATTERN = re.compile(
    r"\b(example|sample|instance|demonstrate|illustrate|show)s?\b", flags=re.IGNORECASE
)

TEMPLATE_VARIABLE_PATTERN = re.compile(r"\{\{\s*\w+\s*\}\}|\$\w+|%\w+%")
VARIABLE_PATTERNS = (
    re.compile(r"\{\{\s*\w+\s*\}\}"),
    re.compile(r"\$\w+"),
    re.compile(r"(?<![\w:]):[A-Za-z_]\w*"),
    re.compile(r"%\w+%"),
    re.compile(r"\[[\w\s]+\]"),
    re.compile(r"<[\w\s]+>"),
)

TERMINOLOGY_GROUPS: tuple[frozenset[str], ...] = (
    frozenset({"user", "client", "customer"}),
    frozenset({"table", "database", "db"}),
)

# Nouns that typically recur in templatable prompts.
ENTITY_PATTERNS: dict[str, re.Pattern[str]] = {
    "entity": re.compile(r"\b(table|database|schema)s?\b", flags=re.IGNORECASE),
    "audience": re.compile(r"\b(user|customer|client)s?\b", flags=re.IGNORECASE),
    "component": re.compile(r"\b(component|module|function)s?\b", flags=re.IGNORECASE),
}

TECHNICAL_TERM_PATTERNS = (
    re.compile(r"^[A-Z]{2,}$"),
    re.compile(r"^\w+\.(js|ts|py|sql|html|css|java)$", flags=re.IGNORECASE),
    re.compile(r"^(API|HTTP|JSON|XML|CSS|HTML|SQL|NoSQL|REST|GraphQL)$", flags=re.IGNORECASE),
    re.compile(r"^(React|Vue|Angular|Node|Express|Django|Flask|FastAPI)$", flags=re.IGNORECASE),
    re.compile(r"^(Docker|Kubernetes|AWS|GCP|Azure|Terraform)$", flags=re.IGNORECASE),
    re.compile(r"^(OAuth2?|JWT|SAML|SSO|2FA|MFA)$", flags=re.IGNORECASE),
    re.compile(r"^(PostgreSQL|MySQL|MongoDB|Redis|SQLite)$", flags=re.IGNORECASE),
    re.compile(r"^(JavaScript|TypeScript|Python|Java|PHP|Ruby|Go|Rust)$", flags=re.IGNORECASE),
    re.compile(
        r"^(function|class|interface|component|method|endpoint|database|schema|table|"
        r"index|query|column|constraint|pipeline)$",
        flags=re.IGNORECASE,
    ),
)


def words(text: str) -> list[str]:
    return WORD_PATTERN.findall(text)


def lower_words(text: str) -> list[str]:
    return [word.lower() for word in WORD_PATTERN.findall(text)]


def sentences(text: str) -> list[str]:
    return [part.strip() for part in SENTENCE_SPLIT.split(text) if part.strip()]


def is_technical_term(word: str) -> bool:
    return any(pattern.match(word) for pattern in TECHNICAL_TERM_PATTERNS)


def vague_terms_in(text: str) -> list[str]:
    """Vague words present in `text`, lowercased, in order of first use."""
    seen: list[str] = []
    for word in lower_words(text):
        if word in VAGUE_TERMS and word not in seen:
            seen.append(word)
    return seen


def count_vague(text: str) -> int:
    return sum(1 for word in lower_words(text) if word in VAGUE_TERMS)


def has_action_verb(text: str) -> bool:
    return any(word in ACTION_VERBS for word in lower_words(text))


def has_domain_noun(text: str) -> bool:
    return any(word in DOMAIN_NOUNS for word in lower_words(text))


def language_mix(text: str) -> tuple[int, int]:
    """Counts of (spanish, english) marker words."""
    return len(SPANISH_MARKERS.findall(text)), len(ENGLISH_MARKERS.findall(text))


def is_grammatical_sentence(text: str) -> bool:
    stripped = text.strip()
    return bool(stripped) and stripped[0].isupper() and stripped[-1] in ".!?"


def has_run_on(text: str, max_words: int) -> bool:
    return any(len(sentence.split()) > max_words for sentence in sentences(text))


def length_score(length: int) -> float:
    """Stepped length suitability used by the scorer."""
    if 100 <= length <= 300:
        return 1.0
    if 50 <= length <= 500:
        return 0.8
    if 20 <= length <= 800:
        return 0.6
    return 0.4


def triangular_length_score(length: int, *, peak_low: int = 100, peak_high: int = 300, zero_at: int = 1000) -> float:
    """1.0 inside the peak band, falling linearly to 0 at both ends."""
    if length <= 0:
        return 0.0
    if length < peak_low:
        return length / peak_low
    if length <= peak_high:
        return 1.0
    if length >= zero_at:
        return 0.0
    return (zero_at - length) / (zero_at - peak_high)


def templatable_entities(text: str) -> dict[str, list[str]]:
    """Entity groups whose nouns occur more than once in `text`."""
    found: dict[str, list[str]] = {}
    for name, pattern in ENTITY_PATTERNS.items():
        matches = pattern.findall(text)
        if len(matches) > 1:
            found[name] = [match.lower() for match in matches]
    return found


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))
