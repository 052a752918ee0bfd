"""
Terminal client for Ask TeRA.
Chats through the same orchestrator as the API, with the local microphone and
OS voices as the speech platform.

Commands:
    /record        start recording (speak, then /stop)
    /stop          stop recording and transcribe into the prompt
    /lang en|te    choose the voice input language
    /play [n]      play the last (or n-th) bot message
    /mute          stop playback
    /quit          exit
"""

import argparse
import asyncio
import logging
from typing import List, Optional

from tera.config import get_settings
from tera.core.language import LanguageCode
from tera.core.pipeline import ConversationOrchestrator
from tera.core.session import Conversation, Notice
from tera.logging.agent_logger import AgentLogger
from tera.services.llm import LLMService
from tera.services.platform import SpeechPlatform
from tera.services.stt import STTService
from tera.services.tts import TTSService

logger = logging.getLogger(__name__)
settings = get_settings()


def _print_notices(notices: List[Notice]):
    for notice in notices:
        print(f"   [{notice.title}] {notice.description}")


def _bot_message_id(conversation: Conversation, index: Optional[int]) -> Optional[str]:
    bot_messages = [m for m in conversation.messages if not m.is_user]
    if not bot_messages:
        return None
    if index is None:
        return bot_messages[-1].id
    if 1 <= index <= len(bot_messages):
        return bot_messages[index - 1].id
    return None


async def build_orchestrator(
    agent_logger: AgentLogger,
    platform: SpeechPlatform
) -> ConversationOrchestrator:
    """Initialize the services from settings and wire them to the platform."""
    stt_service = STTService()
    tts_service = TTSService()
    llm_service = LLMService()
    for service in (stt_service, tts_service, llm_service):
        await service.initialize()

    return ConversationOrchestrator(
        llm_service=llm_service,
        tts_service=tts_service,
        stt_service=stt_service,
        agent_logger=agent_logger,
        platform=platform
    )


async def _chat(language: LanguageCode, speak: bool):
    from tera.services.platform.local import LocalSpeechPlatform

    agent_logger = AgentLogger(str(settings.AGENT_LOG_PATH))
    agent_logger.start()
    orchestrator = await build_orchestrator(agent_logger, LocalSpeechPlatform())

    conversation = Conversation(session_id="terminal")
    orchestrator.set_voice_language(conversation, language)
    welcome = await orchestrator.start_conversation(conversation)
    print(f"TeRA: {welcome.text}")
    _print_notices(conversation.drain_notices())

    pending = ""
    try:
        while True:
            line = await asyncio.to_thread(input, f"You{' [' + pending + ']' if pending else ''}: ")
            line = line.strip()

            if line == "/quit":
                break

            if line == "/record":
                if await orchestrator.start_recording(conversation):
                    print("   Recording... type /stop when done.")
                _print_notices(conversation.drain_notices())
                continue

            if line == "/stop":
                outcome = await orchestrator.stop_recording(conversation)
                _print_notices(outcome.notices)
                if outcome.text:
                    pending = outcome.text
                    print("   Transcribed. Press Enter to send it or type a new message.")
                continue

            if line.startswith("/lang"):
                parts = line.split()
                if len(parts) == 2 and parts[1] in settings.SUPPORTED_LANGUAGES:
                    orchestrator.set_voice_language(conversation, LanguageCode(parts[1]))
                    print(f"   Voice language: {parts[1]}")
                else:
                    print("   Usage: /lang en|te")
                continue

            if line.startswith("/play"):
                parts = line.split()
                index = int(parts[1]) if len(parts) == 2 and parts[1].isdigit() else None
                message_id = _bot_message_id(conversation, index)
                if message_id is None:
                    print("   No such message.")
                    continue
                _print_notices(await orchestrator.play_message(conversation, message_id))
                continue

            if line == "/mute":
                await orchestrator.stop_playback(conversation)
                continue

            text = line or pending
            pending = ""
            result = await orchestrator.send_message(conversation, text)
            if result is None:
                continue

            print(f"TeRA: {result.bot_message.text}")
            _print_notices(result.notices)

            if speak:
                _print_notices(await orchestrator.play_message(conversation, result.bot_message.id))

    except (EOFError, KeyboardInterrupt):
        print()
    finally:
        await orchestrator.stop_playback(conversation)
        await orchestrator.llm.cleanup()
        await orchestrator.stt.cleanup()
        await orchestrator.tts.cleanup()
        await agent_logger.close()


def main(argv: Optional[List[str]] = None):
    parser = argparse.ArgumentParser(description="Chat with TeRA, the T-Fiber support assistant.")
    parser.add_argument(
        "--language",
        choices=settings.SUPPORTED_LANGUAGES,
        default=settings.DEFAULT_LANGUAGE,
        help="voice input language"
    )
    parser.add_argument("--speak", action="store_true", help="read every reply aloud")
    parser.add_argument("--log-level", default=settings.LOG_LEVEL)
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=args.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    asyncio.run(_chat(LanguageCode(args.language), args.speak))


if __name__ == "__main__":
    main()
