"""
Claude vision text reader.

Sends the frame to Claude via the Anthropic API and asks for a plain
line-by-line transcription of any printed text.

Requires ANTHROPIC_API_KEY in environment (.env or system env).
CLAUDE_MODEL overrides the model name.
"""
import base64
import os
from readaloud.adapters.recognition.base import (
    RecognitionAdapter, TRANSCRIBE_PROMPT, encode_jpeg, outcome_from_reply,
)
from readaloud.orchestrator.contracts import RecognitionOutcome
from readaloud.orchestrator.errors import RecognitionError

DEFAULT_MODEL = "claude-haiku-4-5-20251001"


class ClaudeRecognizer(RecognitionAdapter):
    name = "claude"

    def __init__(self, status_store, client=None, model: str | None = None):
        self.status = status_store
        self._client = client
        self._model = model or os.getenv("CLAUDE_MODEL", DEFAULT_MODEL)
        self._ready = client is not None
        if client is None:
            self._init_client()

    @property
    def ready(self) -> bool:
        return self._ready

    def _init_client(self):
        api_key = os.getenv("ANTHROPIC_API_KEY")
        if not api_key:
            self.status.log("claude_recognizer: ANTHROPIC_API_KEY not set")
            return
        import anthropic
        self._client = anthropic.Anthropic(api_key=api_key)
        self._ready = True
        self.status.log(f"claude_recognizer: ready ({self._model})")

    def recognize(self, image) -> RecognitionOutcome:
        if not self._ready or self._client is None:
            raise RecognitionError("claude_recognizer: not configured")

        b64 = base64.standard_b64encode(encode_jpeg(image)).decode("utf-8")
        try:
            message = self._client.messages.create(
                model=self._model,
                max_tokens=512,
                messages=[
                    {
                        "role": "user",
                        "content": [
                            {
                                "type": "image",
                                "source": {
                                    "type": "base64",
                                    "media_type": "image/jpeg",
                                    "data": b64,
                                },
                            },
                            {"type": "text", "text": TRANSCRIBE_PROMPT},
                        ],
                    }
                ],
            )
        except Exception as e:
            self.status.log(f"claude_recognizer: API error: {e}")
            raise RecognitionError(str(e)) from e

        raw = "".join(block.text for block in message.content if getattr(block, "type", "text") == "text")
        outcome = outcome_from_reply(raw)
        self.status.log(f"claude_recognizer: {len(outcome.usable_lines())} line(s)")
        return outcome
