# hazardmon/classify.py
from __future__ import annotations

import re
from typing import List, Pattern, Tuple

from config import CATEGORY_KEYWORDS


def _compile(words: List[str]) -> Pattern[str]:
    return re.compile("|".join(re.escape(w) for w in words))


RULES: List[Tuple[str, Pattern[str]]] = [(cat, _compile(words)) for cat, words in CATEGORY_KEYWORDS]


def classify(*texts: str) -> str:
    """
    First matching rule wins, in CATEGORY_KEYWORDS order.
    Plain substring match on the lower-cased, space-joined texts
    (title, tags, ...). Anything unmatched is "info".
    """
    t = " ".join("" if x is None else str(x) for x in texts).lower()
    for category, pattern in RULES:
        if pattern.search(t):
            return category
    return "info"
