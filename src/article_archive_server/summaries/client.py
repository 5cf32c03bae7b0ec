from typing import Optional

import httpx

from ..config import settings
from ..core.errors import UpstreamUnavailable

SUMMARY_PROMPT = (
    "Summarize the following article in about {words} words. "
    "Reply with the summary only."
)

# Characters of article text sent to the model.
MAX_INPUT_CHARS = 12000


class SummaryClient:
    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None):
        if api_key is None and settings.openai_api_key is not None:
            api_key = settings.openai_api_key.get_secret_value()
        self.api_key = api_key
        self.model = model or settings.summary_model

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    async def summarize(self, text: str) -> str:
        """
        Returns a short plain-text summary of `text`.

        Raises UpstreamUnavailable when no API key is configured or the
        completion request fails.
        """
        if not self.configured:
            raise UpstreamUnavailable("Summaries are not configured")

        payload = {
            "model": self.model,
            "messages": [
                {
                    "role": "system",
                    "content": SUMMARY_PROMPT.format(words=settings.summary_word_count),
                },
                {"role": "user", "content": text[:MAX_INPUT_CHARS]},
            ],
            "max_tokens": settings.max_summary_tokens,
            "temperature": 0.2,
        }

        try:
            async with httpx.AsyncClient(timeout=60) as client:
                resp = await client.post(
                    "https://api.openai.com/v1/chat/completions",
                    json=payload,
                    headers={"Authorization": f"Bearer {self.api_key}"},
                )
            resp.raise_for_status()
            data = resp.json()
            return data["choices"][0]["message"]["content"].strip()
        except (httpx.HTTPError, ValueError, KeyError, IndexError) as exc:
            raise UpstreamUnavailable("Summary service unavailable") from exc
