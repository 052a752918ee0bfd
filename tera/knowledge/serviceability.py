"""
Pin-code serviceability.
Extracts six-digit pin codes from free text and checks them against the
areas where T-Fiber is live.
"""

import logging
import re
from typing import FrozenSet, Optional

from tera.core.language import LanguageCode

logger = logging.getLogger(__name__)

SERVICEABLE_PIN_CODES: FrozenSet[str] = frozenset({
    "500001",
    "500033",
    "500081",
    "501510",
    "502319",
})

# Six ASCII digits (group 1) or six Telugu digits (group 2), never mixed.
# Word boundaries keep longer numbers such as phone numbers from matching.
PIN_CODE_PATTERN = re.compile(r"\b(?:([0-9]{6})|([౦-౯]{6}))\b")

TELUGU_TO_ARABIC_DIGITS = str.maketrans("౦౧౨౩౪౫౬౭౮౯", "0123456789")

SERVICEABLE_TEMPLATES = {
    "en": "Great news! T-Fiber service is available in your area (Pin Code: {pin_code}).",
    "te": "శుభవార్త! మీ ప్రాంతంలో (పిన్ కోడ్: {pin_code}) T-ఫైబర్ సేవ అందుబాటులో ఉంది.",
}

NOT_SERVICEABLE_TEMPLATES = {
    "en": (
        "We are expanding rapidly! Currently, T-Fiber service is not available for "
        "Pin Code: {pin_code}, but please check back soon."
    ),
    "te": (
        "మేము వేగంగా విస్తరిస్తున్నాము! ప్రస్తుతం, పిన్ కోడ్: {pin_code} కోసం T-ఫైబర్ సేవ "
        "అందుబాటులో లేదు, దయచేసి త్వరలో మళ్ళీ తనిఖీ చేయండి."
    ),
}


def convert_telugu_numerals(text: str) -> str:
    """Replace Telugu digits with Arabic digits, leaving everything else."""
    return text.translate(TELUGU_TO_ARABIC_DIGITS)


def check_for_pin_code(text: str) -> Optional[str]:
    """First six-digit pin code in the text, normalised to Arabic digits."""
    match = PIN_CODE_PATTERN.search(text or "")
    if not match:
        return None

    if match.group(1):
        return match.group(1)
    return convert_telugu_numerals(match.group(2))


def is_serviceable(pin_code: str) -> bool:
    return pin_code in SERVICEABLE_PIN_CODES


def check_pin_code_serviceability(pin_code: str, language: str) -> str:
    """Templated availability message for a normalised pin code."""
    language = LanguageCode(language).value
    templates = SERVICEABLE_TEMPLATES if is_serviceable(pin_code) else NOT_SERVICEABLE_TEMPLATES
    logger.debug(f"Pin code {pin_code} serviceable={is_serviceable(pin_code)}")
    return templates[language].format(pin_code=pin_code)
