"""Thin async wrapper around google-generativeai."""

import asyncio
from typing import Optional

import google.generativeai as genai

from ..core.errors import ErrorCategory, ScrapeError, classify_error
from ..utils.key_manager import KeyManager


class GeminiClient:
    """
    Gemini text generation with API key rotation.

    generate_content() is blocking, so calls run in a worker thread and the
    browser session keeps its event loop.
    """

    def __init__(
        self,
        model_name: str = "gemini-2.5-flash",
        api_key: Optional[str] = None,
        key_manager: Optional[KeyManager] = None
    ):
        self.model_name = model_name
        if key_manager is None:
            key_manager = KeyManager([api_key]) if api_key else KeyManager()
        self.key_manager = key_manager

    def _generate_sync(self, prompt: str, json_mode: bool) -> str:
        genai.configure(api_key=self.key_manager.get_key())

        generation_config = {'temperature': 0.2}
        if json_mode:
            generation_config['response_mime_type'] = 'application/json'

        model = genai.GenerativeModel(self.model_name, generation_config=generation_config)
        response = model.generate_content(prompt)
        return response.text.strip()

    async def generate(self, prompt: str, json_mode: bool = False) -> str:
        """
        Send one prompt and return the response text.

        Raises:
            ScrapeError: classified failure; AI service errors never retry
                the whole session, rate limits and network errors keep their
                own category
        """
        try:
            return await asyncio.to_thread(self._generate_sync, prompt, json_mode)
        except Exception as e:
            category = classify_error(e)
            if category in (ErrorCategory.UNKNOWN, ErrorCategory.BROWSER):
                category = ErrorCategory.AI
            raise ScrapeError(
                f"Gemini request failed: {e}",
                category=category,
                context={'model': self.model_name},
                original=e
            ) from e
