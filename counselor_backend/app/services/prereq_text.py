"""Free-text prerequisite extraction.

Catalog footnotes and attributes describe prerequisites in prose, e.g.
"Prereq CPTS 121 or 131, and MATH 171". Extraction runs in two passes:

1. a lexer turns the text into a stream of course tokens, resolving bare
   numbers ("131") against the preceding prefix when a list connector joins them;
2. a grouping pass folds tokens joined by "or" / "/" into one alternative group.

The result is a list of groups: every group must be satisfied (AND), and any
one course inside a group satisfies it (OR).
"""

import re
from dataclasses import dataclass

# Prose words that can sit right before a number but are never a prefix:
# "CPTS 121 or 131", "with 200", "Prereq 300-level".
_STOP_WORDS = (
    "or", "and", "nor", "with", "prereq", "prereqs", "coreq", "coreqs", "least",
    "of", "in", "to", "the", "for", "from", "any", "plus", "both", "either",
    "than", "only", "also", "take", "level", "credit", "hours", "hrs", "units",
    "grade", "above", "below", "after", "before", "then", "each",
)

# "CPTS 121", "Cpt.121", "MATH171", "BIOL 107L"
# Trailing letter only when it is not the start of a word ("MATH 171 or").
_CODE_RE = re.compile(
    r"\b(?!(?:" + "|".join(_STOP_WORDS) + r")\b)"
    r"(?P<prefix>[A-Za-z]{2,6})\s*\.?\s*(?P<number>\d{3})(?!\d)"
    r"(?:(?P<suffix>[A-Za-z])(?![A-Za-z]))?"
    r"|\b(?P<bare>\d{3})\b",
    re.IGNORECASE,
)

# Connectors that let a bare number borrow the previous prefix: "CPTS 121, 122"
_LIST_CONNECTOR_RE = re.compile(r"\bor\b|\band\b|[,;/]")

# Connectors that keep two tokens in the same OR-group: "MATH 171 or 201"
_OR_CONNECTOR_RE = re.compile(r"\bor\b|/")

_JUNIOR_RE = re.compile(r"\bjunior\b", re.IGNORECASE)
_SENIOR_RE = re.compile(r"\bsenior\b", re.IGNORECASE)
_CONCURRENT_RE = re.compile(
    r"concurrent|may be taken concurrently|concurrent enrollment", re.IGNORECASE
)

# Leading code in a display name: "CPTS 121 [QUAN]" -> "CPTS 121"
_LEADING_CODE_RE = re.compile(r"^\s*([A-Za-z]{2,6})\s*(\d{3}[A-Za-z]?)\b")

INHERIT_WINDOW = 80


@dataclass
class CourseToken:
    number: str
    start: int
    end: int
    prefix: str | None = None

    @property
    def code(self) -> str:
        return normalize_code(f"{self.prefix} {self.number}")


def normalize_code(code: str) -> str:
    return re.sub(r"\s+", " ", str(code or "")).strip().upper()


def code_from_name(name: str) -> str | None:
    match = _LEADING_CODE_RE.match(name or "")
    if not match:
        return None
    return f"{match.group(1).upper()} {match.group(2).upper()}"


def join_text(*parts) -> str:
    """Flatten strings and string lists into one space-separated blob."""
    chunks = []
    for part in parts:
        if not part:
            continue
        if isinstance(part, (list, tuple)):
            chunks.extend(str(p) for p in part if p)
        else:
            chunks.append(str(part))
    return " ".join(chunks)


def tokenize(text: str) -> list[CourseToken]:
    raw: list[CourseToken] = []
    for match in _CODE_RE.finditer(text):
        if match.group("bare"):
            raw.append(CourseToken(number=match.group("bare"), start=match.start(), end=match.end()))
            continue
        number = match.group("number") + (match.group("suffix") or "")
        raw.append(
            CourseToken(
                number=number.upper(),
                start=match.start(),
                end=match.end(),
                prefix=match.group("prefix").upper(),
            )
        )

    tokens: list[CourseToken] = []
    for token in raw:
        if token.prefix is None:
            token.prefix = _inherited_prefix(text, tokens, token)
            if token.prefix is None:
                continue
        tokens.append(token)
    return tokens


def _inherited_prefix(text: str, previous: list[CourseToken], token: CourseToken) -> str | None:
    if not previous:
        return None
    anchor = previous[-1]
    between = text[anchor.end:token.start]
    if len(between) > INHERIT_WINDOW:
        return None
    if not _LIST_CONNECTOR_RE.search(between.lower()):
        return None
    return anchor.prefix


def group_tokens(text: str, tokens: list[CourseToken]) -> list[list[str]]:
    if not tokens:
        return []
    groups: list[list[str]] = []
    current = [tokens[0].code]
    for prev, token in zip(tokens, tokens[1:]):
        between = text[prev.end:token.start].lower()
        if _OR_CONNECTOR_RE.search(between):
            current.append(token.code)
        else:
            groups.append(_dedupe(current))
            current = [token.code]
    groups.append(_dedupe(current))
    return groups


def _dedupe(codes: list[str]) -> list[str]:
    seen: set[str] = set()
    out = []
    for code in codes:
        norm = normalize_code(code)
        if norm and norm not in seen:
            seen.add(norm)
            out.append(norm)
    return out


def extract_prerequisite_groups(
    text: str,
    own_key: str | None = None,
    fallback_codes: list[str] | None = None,
) -> list[list[str]]:
    """Parse prerequisite groups out of ``text``.

    ``own_key`` is removed from every group, since a course's own name is part
    of the text it is described by. ``fallback_codes`` (catalog prerequisite
    codes) are used one-per-group when the text yields nothing.
    """
    groups = group_tokens(text, tokenize(text or ""))
    if own_key:
        own = normalize_code(own_key)
        groups = [[code for code in group if code != own] for group in groups]
    groups = [group for group in groups if group]
    if not groups and fallback_codes:
        groups = [[normalize_code(code)] for code in fallback_codes if normalize_code(code)]
    return groups


def detect_level_requirement(text: str) -> str | None:
    if _JUNIOR_RE.search(text or ""):
        return "junior"
    if _SENIOR_RE.search(text or ""):
        return "senior"
    return None


def mentions_concurrent(text: str) -> bool:
    return bool(_CONCURRENT_RE.search(text or ""))
