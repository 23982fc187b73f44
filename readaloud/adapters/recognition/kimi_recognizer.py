"""
KIMI (Moonshot AI) vision text reader.
Uses KIMI's OpenAI-compatible chat API with an image part.
Requires KIMI_API_KEY in .env; KIMI_MODEL overrides the model.
"""
import base64
import os
import httpx
from readaloud.adapters.recognition.base import (
    RecognitionAdapter, TRANSCRIBE_PROMPT, encode_jpeg, outcome_from_reply,
)
from readaloud.orchestrator.contracts import RecognitionOutcome
from readaloud.orchestrator.errors import RecognitionError

KIMI_API_URL = "https://api.moonshot.cn/v1/chat/completions"
DEFAULT_MODEL = "moonshot-v1-8k-vision-preview"
TIMEOUT_S = 15.0


class KimiRecognizer(RecognitionAdapter):
    name = "kimi"

    def __init__(self, status_store, api_key: str | None = None, client: httpx.Client | None = None):
        self.status = status_store
        self._api_key = api_key or os.getenv("KIMI_API_KEY")
        self._model = os.getenv("KIMI_MODEL", DEFAULT_MODEL)
        self._client = client or httpx.Client(timeout=TIMEOUT_S)
        if self._api_key:
            self.status.log(f"kimi_recognizer: ready (model={self._model})")
        else:
            self.status.log("kimi_recognizer: KIMI_API_KEY not set")

    @property
    def ready(self) -> bool:
        return bool(self._api_key)

    def recognize(self, image) -> RecognitionOutcome:
        if not self.ready:
            raise RecognitionError("kimi_recognizer: not configured")

        b64 = base64.standard_b64encode(encode_jpeg(image)).decode("utf-8")
        payload = {
            "model": self._model,
            "messages": [
                {
                    "role": "user",
                    "content": [
                        {
                            "type": "image_url",
                            "image_url": {"url": f"data:image/jpeg;base64,{b64}"},
                        },
                        {"type": "text", "text": TRANSCRIBE_PROMPT},
                    ],
                }
            ],
            "max_tokens": 512,
        }
        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }

        try:
            resp = self._client.post(KIMI_API_URL, json=payload, headers=headers)
        except httpx.HTTPError as e:
            self.status.log(f"kimi_recognizer: request failed: {e}")
            raise RecognitionError(str(e)) from e
        if not resp.is_success:
            self.status.log(f"kimi_recognizer: HTTP {resp.status_code} - {resp.text[:300]}")
            raise RecognitionError(f"HTTP {resp.status_code}")
        try:
            raw = resp.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError) as e:
            raise RecognitionError(f"unexpected response shape: {e}") from e
        return outcome_from_reply(raw or "")
