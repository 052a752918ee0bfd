"""
TeRA - T-Fiber Bilingual Support Assistant
==========================================
An English/Telugu customer-support assistant for the T-Fiber internet service.

Features:
- Typed and spoken input
- Pin-code serviceability lookup
- Keyword-matched FAQ answers
- Generative fallback for everything else
- Spoken replies (edge-tts audio or platform narration)

Tech Stack:
- FastAPI (async backend)
- Groq API (LLM + Whisper transcription)
- edge-tts (speech synthesis)
"""

__version__ = "1.0.0"
__author__ = "TeRA Team"
