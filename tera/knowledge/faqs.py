"""
FAQ Repository.
Static keyword-matched answers served before the generative fallback.
"""

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import List, Mapping, Optional, Tuple

from tera.core.language import LanguageCode

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FAQEntry:
    """Keyword-to-response record."""
    id: str
    keywords: Mapping[str, Tuple[str, ...]]
    responses: Mapping[str, str]

    def keywords_for(self, language: str) -> Tuple[str, ...]:
        """Keywords for a language, falling back to English."""
        return self.keywords.get(language) or self.keywords[LanguageCode.EN.value]

    def response_for(self, language: str) -> str:
        """Response for a language, falling back to English."""
        return self.responses.get(language) or self.responses[LanguageCode.EN.value]

    def matches(self, text: str, language: str) -> bool:
        lowered = text.lower()
        return any(keyword.lower() in lowered for keyword in self.keywords_for(language))


def _entry(id: str, en_keywords, te_keywords, en_response: str, te_response: str) -> FAQEntry:
    return FAQEntry(
        id=id,
        keywords=MappingProxyType({"en": tuple(en_keywords), "te": tuple(te_keywords)}),
        responses=MappingProxyType({"en": en_response, "te": te_response})
    )


# Declaration order is match order
FAQ_ENTRIES: Tuple[FAQEntry, ...] = (
    _entry(
        "greeting",
        ["hello", "hi", "hey", "greetings"],
        ["నమస్కారం", "హాయ్", "హలో"],
        "Hello! I am TeRA, your T-Fiber assistant. How can I help you today?",
        "నమస్కారం! నేను TeRA, మీ T-ఫైబర్ సహాయకుడిని. ఈ రోజు నేను మీకు ఎలా సహాయపడగలను?",
    ),
    _entry(
        "plans",
        ["plans", "packages", "offers", "internet plans", "broadband plans"],
        ["ప్లాన్స్", "ప్యాకేజీలు", "ఆఫర్స్", "ఇంటర్నెట్ ప్లాన్స్", "బ్రాడ్‌బ్యాండ్ ప్లాన్స్"],
        "You can find our latest T-Fiber plans on our official website. We offer a variety "
        "of high-speed internet packages tailored to your needs.",
        "మీరు మా తాజా T-ఫైబర్ ప్లాన్‌లను మా అధికారిక వెబ్‌సైట్‌లో కనుగొనవచ్చు. మేము మీ అవసరాలకు "
        "అనుగుణంగా వివిధ రకాల హై-స్పీడ్ ఇంటర్నెట్ ప్యాకేజీలను అందిస్తాము.",
    ),
    _entry(
        "tfiber_info",
        ["what is tfiber", "about tfiber", "tfiber"],
        ["టి-ఫైబర్ అంటే ఏమిటి", "టి-ఫైబర్ గురించి", "టి-ఫైబర్"],
        "T-Fiber is a project by the Government of Telangana to provide high-speed internet "
        "connectivity across the state, including rural areas.",
        "టి-ఫైబర్ అనేది తెలంగాణ ప్రభుత్వం గ్రామీణ ప్రాంతాలతో సహా రాష్ట్రవ్యాప్తంగా హై-స్పీడ్ "
        "ఇంటర్నెట్ కనెక్టివిటీని అందించే ప్రాజెక్ట్.",
    ),
    _entry(
        "support",
        ["support", "customer care", "help", "issue", "problem"],
        ["సపోర్ట్", "కస్టమర్ కేర్", "సహాయం", "సమస్య"],
        "For support, please visit our contact page on the T-Fiber website or call our helpline.",
        "సహాయం కోసం, దయచేసి T-ఫైబర్ వెబ్‌సైట్‌లోని మా సంప్రదింపు పేజీని సందర్శించండి లేదా మా "
        "హెల్ప్‌లైన్‌కు కాల్ చేయండి.",
    ),
    _entry(
        "pincode_generic_question",
        ["service area", "availability", "check service", "my area"],
        ["సేవా ప్రాంతం", "లభ్యత", "సేవను తనిఖీ చేయండి", "నా ప్రాంతం"],
        "To check for service availability, please provide your 6-digit pin code.",
        "సేవా లభ్యతను తనిఖీ చేయడానికి, దయచేసి మీ 6-అంకెల పిన్ కోడ్‌ను అందించండి.",
    ),
)


class FAQRepository:
    """Read-only access to the static FAQ list."""

    def __init__(self, entries: Optional[Tuple[FAQEntry, ...]] = None):
        self._entries = entries if entries is not None else FAQ_ENTRIES

    def get_by_id(self, faq_id: str) -> Optional[FAQEntry]:
        """Get an FAQ by ID."""
        for entry in self._entries:
            if entry.id == faq_id:
                return entry
        return None

    def get_all(self) -> List[FAQEntry]:
        """Get all FAQs in match order."""
        return list(self._entries)

    def match(self, text: str, language: str) -> Optional[FAQEntry]:
        """First entry whose keywords appear in the text (no ranking)."""
        for entry in self._entries:
            if entry.matches(text, language):
                logger.debug(f"FAQ matched: {entry.id}")
                return entry
        return None


_repository = FAQRepository()


def get_faq_response(text: str, language: str) -> Optional[str]:
    """Localised response of the first matching FAQ, or None."""
    language = LanguageCode(language).value
    entry = _repository.match(text, language)
    if entry is None:
        return None
    return entry.response_for(language)
