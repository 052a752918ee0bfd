"""Static knowledge: FAQs, serviceable pin codes and canned replies."""

from tera.knowledge.faqs import FAQEntry, FAQRepository, FAQ_ENTRIES, get_faq_response
from tera.knowledge.serviceability import (
    SERVICEABLE_PIN_CODES,
    check_for_pin_code,
    check_pin_code_serviceability
)
from tera.knowledge.responses import DEFAULT_RESPONSES, WELCOME_MESSAGES

__all__ = [
    "FAQEntry",
    "FAQRepository",
    "FAQ_ENTRIES",
    "get_faq_response",
    "SERVICEABLE_PIN_CODES",
    "check_for_pin_code",
    "check_pin_code_serviceability",
    "DEFAULT_RESPONSES",
    "WELCOME_MESSAGES"
]
