import re

_TRAILING_PUNCT_RE = re.compile(r"[\s.;:,!?]+$")


def collapse_whitespace(text: str) -> str:
    return " ".join(text.split())


def normalize_title(title: str) -> str:
    """Lower-cased, whitespace-collapsed title without trailing punctuation."""
    return _TRAILING_PUNCT_RE.sub("", collapse_whitespace(title).lower())


def matched_keywords(text: str, keywords: list[str]) -> list[str]:
    """Keywords (case-insensitive) contained in ``text``, in keyword order."""
    lower = text.lower()
    return [kw for kw in keywords if kw.lower() in lower]


def unique_in_order(values: list[str]) -> list[str]:
    seen: set[str] = set()
    out = []
    for value in values:
        if value not in seen:
            seen.add(value)
            out.append(value)
    return out
