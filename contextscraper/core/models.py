"""Data model shared by the scraping pipeline.

Every record that crosses from one component to another is a dataclass
here. Records arriving from outside Python (the content model's JSON, the
in-page change tracker) go through from_dict(), which validates shape and
raises ValueError on anything malformed.
"""

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class ScrapeMode(str, Enum):
    """Extraction path."""
    NORMAL = 'normal'
    BEAST = 'beast'


class InteractionType(str, Enum):
    CLICK = 'click'
    HOVER = 'hover'
    FOCUS = 'focus'
    SCROLL = 'scroll'

    @classmethod
    def parse(cls, value: Any) -> 'InteractionType':
        """Unknown or missing types fall back to click."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.CLICK


class ChangeType(str, Enum):
    ELEMENT_ADDED = 'elementAdded'
    NEWLY_VISIBLE = 'newlyVisibleElement'
    ATTRIBUTE_CHANGED = 'attributeChanged'


# Ranking weight of each change type when picking what an interaction revealed
CHANGE_PRIORITY = {
    ChangeType.ELEMENT_ADDED: 5,
    ChangeType.NEWLY_VISIBLE: 3,
    ChangeType.ATTRIBUTE_CHANGED: 2,
}


@dataclass(frozen=True)
class Rect:
    x: float
    y: float
    width: float
    height: float

    @classmethod
    def from_dict(cls, data: Optional[Dict]) -> Optional['Rect']:
        if not data:
            return None
        try:
            return cls(
                x=float(data.get('x', 0)),
                y=float(data.get('y', 0)),
                width=float(data.get('width', 0)),
                height=float(data.get('height', 0))
            )
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid bounding box: {data!r}") from e


@dataclass(frozen=True)
class Locator:
    """Position/identity descriptor for a DOM node."""
    xpath: str
    css_path: Optional[str] = None
    bounding_box: Optional[Rect] = None

    def __post_init__(self):
        if not self.xpath or not isinstance(self.xpath, str):
            raise ValueError("Locator requires a non-empty xpath")


@dataclass(frozen=True)
class CandidateElement:
    """An element the content model thinks is worth interacting with."""
    selector: str
    text_content: str = ''
    interaction_type: InteractionType = InteractionType.CLICK
    reason: str = ''

    @classmethod
    def from_dict(cls, data: Dict) -> 'CandidateElement':
        if not isinstance(data, dict):
            raise ValueError(f"Candidate element must be an object, got {type(data).__name__}")

        selector = data.get('selector')
        if not isinstance(selector, str) or not selector.strip():
            raise ValueError("Candidate element is missing a selector")

        return cls(
            selector=selector.strip(),
            text_content=str(data.get('textContent') or data.get('text_content') or ''),
            interaction_type=InteractionType.parse(
                data.get('interactionType') or data.get('interaction_type')
            ),
            reason=str(data.get('reason') or '')
        )


@dataclass
class ElementAnalysis:
    """Answer of the content model for one DOM snapshot."""
    interaction_needed: bool
    analysis: str = ''
    elements: List[CandidateElement] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict) -> 'ElementAnalysis':
        if not isinstance(data, dict):
            raise ValueError("Element analysis must be a JSON object")

        needed = str(data.get('interactionNeeded', '')).strip().upper()
        if needed not in ('YES', 'NO'):
            raise ValueError(f"interactionNeeded must be YES or NO, got {needed!r}")

        elements = []
        if needed == 'YES':
            raw_elements = data.get('elements') or []
            if not isinstance(raw_elements, list):
                raise ValueError("elements must be a list")
            for raw in raw_elements:
                try:
                    elements.append(CandidateElement.from_dict(raw))
                except ValueError as e:
                    print(f"    ⚠ Dropping malformed candidate: {e}")

        return cls(
            interaction_needed=needed == 'YES',
            analysis=str(data.get('analysis') or ''),
            elements=elements
        )


@dataclass(frozen=True)
class ObservedChange:
    """One mutation seen by the change tracker during an interaction."""
    change_type: ChangeType
    locator: Locator
    timestamp: float
    text_length: int = 0
    outer_html: str = ''

    @property
    def priority(self) -> int:
        return CHANGE_PRIORITY[self.change_type]

    @classmethod
    def from_dict(cls, data: Dict) -> 'ObservedChange':
        if not isinstance(data, dict):
            raise ValueError("Observed change must be an object")
        try:
            change_type = ChangeType(data.get('changeType'))
        except ValueError as e:
            raise ValueError(f"Unknown change type: {data.get('changeType')!r}") from e

        return cls(
            change_type=change_type,
            locator=Locator(
                xpath=data.get('xpath') or '',
                css_path=data.get('cssPath') or None,
                bounding_box=Rect.from_dict(data.get('boundingBox'))
            ),
            timestamp=float(data.get('timestamp') or 0),
            text_length=int(data.get('textLength') or 0),
            outer_html=str(data.get('outerHTML') or '')
        )


@dataclass
class RevealedContentItem:
    """Content an interaction revealed, plus where it belongs."""
    selector: str
    element_index: int
    interaction_type: InteractionType
    change_type: ChangeType
    revealed_html: str
    position: Locator
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class PhaseRecord:
    """Timing entry for one session phase."""
    name: str
    started_at: float
    duration: float = 0.0
    success: bool = True
    detail: str = ''


@dataclass
class ScrapeResult:
    """
    Outcome of one scrape.

    status:
        - success: content extracted, no caveats
        - partial: content extracted, enhanced_error explains what was skipped
        - failed: no content, error holds the final failure
    """
    success: bool
    url: str
    mode: ScrapeMode
    markdown: str = ''
    html: str = ''
    query: Optional[str] = None
    enhanced_error: Optional[Any] = None
    error: Optional[str] = None
    attempts: int = 0
    processing_time: float = 0.0
    revealed_items: int = 0
    phase_log: List[PhaseRecord] = field(default_factory=list)
    finished_at: float = field(default_factory=time.time)

    @property
    def status(self) -> str:
        if not self.success:
            return 'failed'
        if self.enhanced_error is not None:
            return 'partial'
        return 'success'
