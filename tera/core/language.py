"""
Language detection.
Classifies text as English or Telugu by script.
"""

import re
from enum import Enum


class LanguageCode(str, Enum):
    """Languages the assistant speaks."""
    EN = "en"
    TE = "te"


# Telugu Unicode block: U+0C00 to U+0C7F
TELUGU_PATTERN = re.compile(r"[\u0C00-\u0C7F]")


def detect_language(text: str) -> LanguageCode:
    """Telugu if any character is in the Telugu block, otherwise English."""
    if TELUGU_PATTERN.search(text or ""):
        return LanguageCode.TE
    return LanguageCode.EN
