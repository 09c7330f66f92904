"""Interactive element discovery with Gemini.

Sends a sanitized DOM snapshot to the model and gets back the elements worth
clicking/hovering to reveal content that is not in the DOM yet.
"""

import json
import re
from typing import Optional

from ..core.errors import ErrorCategory, ScrapeError
from ..core.models import ElementAnalysis
from .gemini_client import GeminiClient
from .prompts import build_element_analysis_prompt


_FENCE = re.compile(r'```(?:json)?\s*|\s*```')
_BARE_ANSWER = re.compile(r'^\W*(YES|NO)\W*$', re.IGNORECASE)


def parse_analysis_response(response_text: str) -> ElementAnalysis:
    """
    Parse the model's answer into an ElementAnalysis.

    Accepts JSON (optionally inside ```json fences). A bare YES/NO answer is
    accepted as a valid response without elements.

    Raises:
        ScrapeError: (category ai) when the answer is neither
    """
    text = _FENCE.sub('', response_text or '').strip()

    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        # The object is sometimes surrounded by prose
        start, end = text.find('{'), text.rfind('}')
        data = None
        if start != -1 and end > start:
            try:
                data = json.loads(text[start:end + 1])
            except json.JSONDecodeError:
                data = None

    if isinstance(data, dict):
        try:
            return ElementAnalysis.from_dict(data)
        except ValueError as e:
            raise ScrapeError(
                f"Invalid element analysis: {e}",
                category=ErrorCategory.AI
            ) from e

    bare = _BARE_ANSWER.match(text)
    if bare:
        answer = bare.group(1).upper()
        print(f"    ⚠ Model answered plain '{answer}', no elements to process")
        return ElementAnalysis(
            interaction_needed=answer == 'YES',
            analysis=f"Model returned plain text '{answer}'. Manual recovery applied.",
            elements=[]
        )

    raise ScrapeError(
        f"Could not parse element analysis: {text[:200]!r}",
        category=ErrorCategory.AI
    )


class ElementDiscovery:
    """Asks Gemini which elements reveal hidden content."""

    def __init__(self, client: GeminiClient):
        self.client = client

    async def find_interactive_elements(
        self,
        snapshot: str,
        query: Optional[str] = None
    ) -> ElementAnalysis:
        """
        Analyze a DOM snapshot.

        Args:
            snapshot: Sanitized page HTML
            query: Optional user focus

        Returns:
            ElementAnalysis (no elements when interaction is not needed)
        """
        print(f"  [DISCOVER] Analyzing {len(snapshot)} chars of HTML with {self.client.model_name}")

        prompt = build_element_analysis_prompt(snapshot, query)
        response_text = await self.client.generate(prompt, json_mode=True)
        analysis = parse_analysis_response(response_text)

        if analysis.interaction_needed:
            print(f"    ✓ Interaction needed: {len(analysis.elements)} candidate(s)")
        else:
            print("    ✓ No interaction needed")
        if analysis.analysis:
            print(f"    → {analysis.analysis[:200]}")

        return analysis
