"""
Agent Logger for Markdown Execution Logs.
Creates a human-readable record of every conversation for support review.
"""

import asyncio
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

SOURCE_ICONS = {
    "pin_code": "📍",
    "faq": "📚",
    "generated": "🤖",
    "fallback": "⚠️",
    "welcome": "👋",
}


class AgentLogger:
    """
    Markdown logger for conversations.

    Documents:
    - Session starts
    - User messages and transcriptions
    - Bot replies and which tier produced them
    - Errors
    """

    def __init__(self, log_path: str = "logs/agent_log.md"):
        self.log_path = Path(log_path)
        self.log_path.parent.mkdir(parents=True, exist_ok=True)

        self._queue: asyncio.Queue = asyncio.Queue()
        self._writer_task: Optional[asyncio.Task] = None
        self._running = False

    def start(self):
        """Start the background writer (needs a running event loop)."""
        if self._writer_task is None:
            self._writer_task = asyncio.create_task(self._write_loop())
            self._running = True

    async def _write_loop(self):
        """Background loop to write logs asynchronously."""
        while self._running:
            try:
                entry = await asyncio.wait_for(
                    self._queue.get(),
                    timeout=1.0
                )
                self._write(entry)

            except asyncio.TimeoutError:
                continue
            except asyncio.CancelledError:
                break

    def _write(self, entry: str):
        """Append an entry to the log file."""
        try:
            with open(self.log_path, "a", encoding="utf-8") as f:
                f.write(entry)
                f.write("\n")
        except OSError as e:
            logger.error(f"Failed to write log: {e}")

    async def _log(self, entry: str):
        """Queue the entry, or write it directly when no writer runs."""
        if self._running and self._writer_task:
            await self._queue.put(entry)
        else:
            self._write(entry)

    # =========================
    # Public Logging Methods
    # =========================

    async def log_session_start(
        self,
        session_id: str,
        language: str = "en"
    ):
        """Log the start of a new session."""
        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")

        entry = f"""
---

## 🆕 Session Started: `{session_id}`

**Timestamp:** {timestamp}
**Voice Language:** {language}

---
"""
        await self._log(entry)

    async def log_user_message(
        self,
        session_id: str,
        text: str,
        language: str
    ):
        """Log a typed or transcribed user message."""
        timestamp = datetime.now().strftime("%H:%M:%S")

        entry = f"""### 💬 User Message | {timestamp}

**Session:** `{session_id}`
**Text:** "{text}"
**Detected Language:** {language}
"""
        await self._log(entry)

    async def log_transcription(
        self,
        session_id: str,
        text: str,
        language: str,
        latency_ms: Optional[float] = None
    ):
        """Log a transcription result."""
        timestamp = datetime.now().strftime("%H:%M:%S")

        entry = f"""### 🎤 Transcription | {timestamp}

**Session:** `{session_id}`
**Transcription:** "{text}"
**Language:** {language}
{f'**STT Latency:** {latency_ms:.0f}ms' if latency_ms else ''}
"""
        await self._log(entry)

    async def log_reply(
        self,
        session_id: str,
        text: str,
        language: str,
        source: str,
        latency_ms: Optional[float] = None
    ):
        """Log a bot reply and the tier that produced it."""
        timestamp = datetime.now().strftime("%H:%M:%S")
        icon = SOURCE_ICONS.get(source, "🤖")

        display_response = text
        if len(text) > 500:
            display_response = text[:500] + "..."

        entry = f"""### {icon} Reply ({source}) | {timestamp}

**Session:** `{session_id}`
**Language:** {language}

> {display_response}

{f'**Resolution Time:** {latency_ms:.0f}ms' if latency_ms else ''}
"""
        await self._log(entry)

    async def log_error(
        self,
        session_id: str,
        error_type: str,
        error_message: str
    ):
        """Log an error."""
        timestamp = datetime.now().strftime("%H:%M:%S")

        entry = f"""### ❌ Error | {timestamp}

**Session:** `{session_id}`
**Type:** `{error_type}`
**Message:** {error_message}
"""
        await self._log(entry)

    async def log_system_event(
        self,
        event: str,
        details: Dict[str, Any]
    ):
        """Log a system event."""
        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")

        details_str = ""
        for key, value in details.items():
            details_str += f"- **{key}:** {value}\n"

        entry = f"""### ⚙️ System Event | {timestamp}

**Event:** {event}

{details_str}
---
"""
        await self._log(entry)

    async def close(self):
        """Close the logger and flush pending entries."""
        self._running = False

        if self._writer_task:
            self._writer_task.cancel()
            try:
                await self._writer_task
            except asyncio.CancelledError:
                pass
            self._writer_task = None

        while not self._queue.empty():
            self._write(self._queue.get_nowait())

        logger.info("Agent logger closed")
