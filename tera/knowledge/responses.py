"""Canned replies in both languages."""

DEFAULT_RESPONSES = {
    "en": (
        "I'm sorry, I couldn't understand that. Can you please rephrase or ask something "
        "else about T-Fiber services?"
    ),
    "te": (
        "క్షమించండి, నేను దానిని అర్థం చేసుకోలేకపోయాను. దయచేసి మళ్లీ చెప్పగలరా లేదా T-ఫైబర్ "
        "సేవల గురించి వేరే ఏదైనా అడగగలరా?"
    ),
}

WELCOME_MESSAGES = {
    "en": (
        "Hello! I'm TeRA, your T-Fiber assistant. How can I help you with our services, "
        "plans, or check serviceability in your area today?"
    ),
    "te": (
        "నమస్కారం! నేను TeRA, మీ T-ఫైబర్ సహాయకుడిని. ఈ రోజు మా సేవలు, ప్లాన్‌లు లేదా మీ "
        "ప్రాంతంలో సేవా లభ్యతను తనిఖీ చేయడంలో నేను మీకు ఎలా సహాయపడగలను?"
    ),
}

# Generative fallback apologies
EMPTY_REPLY_APOLOGIES = {
    "en": "Sorry, I couldn't process your request at the moment. Please try again.",
    "te": "క్షమించండి, నేను మీ అభ్యర్థనను ప్రస్తుతం ప్రాసెస్ చేయలేకపోయాను. దయచేసి మళ్ళీ ప్రయత్నించండి.",
}

ERROR_REPLY_APOLOGIES = {
    "en": "Sorry, an error occurred. Please try again.",
    "te": "క్షమించండి, ఒక లోపం సంభవించింది. దయచేసి మళ్ళీ ప్రయత్నించండి.",
}
