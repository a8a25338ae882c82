"""
Transcript -> Intent mapping.

Pure: no state, no I/O. Called from the reducer.

Policy:
- Case-insensitive substring match anywhere in the utterance.
- The open phrase is checked first, so it wins when both are present.
- No fuzzy matching, no locale-aware tokenization.
"""

from __future__ import annotations

from voicedrawer.constants import CLOSE_PHRASE, OPEN_PHRASE
from voicedrawer.orchestrator.enums.intent import Intent
from voicedrawer.orchestrator.state_dataclass import Transcript


def interpret(
    transcript: Transcript,
    *,
    open_phrase: str = OPEN_PHRASE,
    close_phrase: str = CLOSE_PHRASE,
) -> Intent:
    """Return the drawer intent carried by one transcript."""
    text = transcript.text.lower()
    if not text:
        return Intent.NONE

    if open_phrase.lower() in text:
        return Intent.OPEN_DRAWER
    if close_phrase.lower() in text:
        return Intent.CLOSE_DRAWER
    return Intent.NONE
