import unicodedata


def normalize(text: str) -> str:
    """Strip diacritics and lower-case, for accent/case-insensitive comparison."""
    # Lower first: some capitals (e.g. "İ") lower-case into a base letter plus a combining mark.
    decomposed = unicodedata.normalize("NFD", text.lower())
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def contains_insensitive(haystack: str, needle: str) -> bool:
    return normalize(needle) in normalize(haystack)


def equals_insensitive(a: str, b: str) -> bool:
    return normalize(a) == normalize(b)
