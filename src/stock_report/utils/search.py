"""Query tokenization for thematic symbol search."""

import re

STOPWORDS = frozenset({"stocks", "stock", "sector", "theme", "report", "the", "and", "for", "of", "in"})

MAX_SEARCH_QUERIES = 8

_NON_ALNUM = re.compile(r"[^a-z0-9\s]")


def query_tokens(query: str) -> list[str]:
    """Lowercased alphanumeric tokens with stopwords removed, in order."""
    cleaned = _NON_ALNUM.sub(" ", query.lower())
    return [token for token in cleaned.split() if token not in STOPWORDS]


def build_search_queries(query: str) -> list[str]:
    """
    Search strings for a theme query, most specific first.

    The raw query, then 3- and 2-word phrases, their condensed
    ("datacenter") and hyphenated ("data-center") spellings, then single
    tokens. De-duplicated and capped at 8.
    """
    tokens = query_tokens(query)
    phrases: list[str] = []
    for i in range(len(tokens)):
        if i + 2 < len(tokens):
            phrases.append(" ".join(tokens[i : i + 3]))
        if i + 1 < len(tokens):
            phrases.append(" ".join(tokens[i : i + 2]))
    condensed = [variant for phrase in phrases for variant in (phrase.replace(" ", ""), phrase.replace(" ", "-"))]

    unique: list[str] = []
    for candidate in [query, *phrases, *condensed, *tokens]:
        if candidate and candidate not in unique:
            unique.append(candidate)
    return unique[:MAX_SEARCH_QUERIES]


def matched_terms(text: str, terms: list[str]) -> list[str]:
    """Terms found as substrings of ``text`` (case-insensitive), without repeats."""
    lowered = text.lower()
    found: list[str] = []
    for term in terms:
        if term.lower() in lowered and term not in found:
            found.append(term)
    return found
