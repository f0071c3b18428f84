"""KeyNormalizer: splits JSON object keys into lowercase words.

Used when building the text that is embedded for a field path (with
``normalize_keys=True``) and by ``StaticBackend`` so that ``userName``,
``user_name``, ``UserName`` and ``user-name`` produce the same features.

Handled conventions: camelCase, PascalCase, snake_case, kebab-case,
dotted/space separated words, acronym runs (``APIKey`` -> ``api key``) and
letter/digit boundaries (``address2`` -> ``address 2``).
"""

import re

# Underscores, hyphens, dots and whitespace all act as word separators
_SEP = re.compile(r"[_\-.\s]+")

# lowercase or digit followed by uppercase: "camelCase" -> "camel Case"
_LOWER_UPPER = re.compile(r"([a-z\d])([A-Z])")

# acronym run before a capitalized word: "URLParser" -> "URL Parser"
_ACRONYM = re.compile(r"([A-Z]+)([A-Z][a-z])")

# letter->digit and digit->letter transitions (lookarounds, so one pass is enough)
_DIGIT_BOUNDARY = re.compile(r"(?<=[A-Za-z])(?=\d)|(?<=\d)(?=[A-Za-z])")


class KeyNormalizer:
    """Splits keys into lowercase words.

    Stateless; a single module-level instance can be shared freely.

    Example usage:
        normalizer = KeyNormalizer()
        normalizer.words("fullName")       # ["full", "name"]
        normalizer.normalize("APIKey")     # "api key"
        normalizer.normalize("years_old")  # "years old"
    """

    def words(self, key: str) -> list[str]:
        """Return the lowercase words that make up ``key``."""
        s = _ACRONYM.sub(r"\1 \2", key)
        s = _LOWER_UPPER.sub(r"\1 \2", s)
        s = _DIGIT_BOUNDARY.sub(" ", s)
        s = _SEP.sub(" ", s)
        return s.lower().split()

    def normalize(self, key: str) -> str:
        """Return ``key`` as lowercase, single-space separated words."""
        return " ".join(self.words(key))
