"""Round-robin Gemini API key rotation."""

import os
import re
import threading
from typing import List, Optional


class KeyManager:
    """
    Hands out Gemini API keys in rotation.

    Keys are read from GEMINI_API_KEY, GOOGLE_GEMINI_KEY and any
    GOOGLE_GEMINI_KEY<n> variables (ordered by n). Spreading calls over
    several keys keeps a single key from hitting its rate limit first.
    """

    _KEY_PATTERN = re.compile(r'^GOOGLE_GEMINI_KEY(\d+)$')

    def __init__(self, keys: Optional[List[str]] = None):
        self.keys = keys if keys is not None else self._keys_from_env()
        self._index = 0
        self._lock = threading.Lock()

    @classmethod
    def _keys_from_env(cls) -> List[str]:
        keys = []
        for name in ('GEMINI_API_KEY', 'GOOGLE_GEMINI_KEY'):
            value = os.getenv(name)
            if value:
                keys.append(value.strip())

        numbered = []
        for name, value in os.environ.items():
            match = cls._KEY_PATTERN.match(name)
            if match and value.strip():
                numbered.append((int(match.group(1)), value.strip()))
        keys.extend(value for _, value in sorted(numbered))

        # Same key configured twice only counts once
        return list(dict.fromkeys(keys))

    def __len__(self) -> int:
        return len(self.keys)

    def get_key(self) -> str:
        """Next key in rotation."""
        if not self.keys:
            raise ValueError(
                "No Gemini API key configured. Set GEMINI_API_KEY or GOOGLE_GEMINI_KEY."
            )
        with self._lock:
            key = self.keys[self._index % len(self.keys)]
            self._index += 1
        return key
