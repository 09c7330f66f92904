"""Tests for the shared data model."""

import pytest

from contextscraper.core.models import (
    CandidateElement,
    ChangeType,
    ElementAnalysis,
    InteractionType,
    Locator,
    ObservedChange,
    ScrapeMode,
    ScrapeResult,
)


def test_candidate_from_camel_case():
    candidate = CandidateElement.from_dict({
        'selector': " button.tab-specs ",
        'textContent': "Specs",
        'interactionType': "HOVER",
        'reason': "Shows the spec table",
    })

    assert candidate.selector == "button.tab-specs"
    assert candidate.interaction_type == InteractionType.HOVER
    assert candidate.text_content == "Specs"


def test_candidate_unknown_interaction_defaults_to_click():
    candidate = CandidateElement.from_dict({'selector': 'a', 'interactionType': 'doubletap'})
    assert candidate.interaction_type == InteractionType.CLICK


@pytest.mark.parametrize("raw", [{}, {'selector': ''}, {'selector': 3}, "button"])
def test_candidate_rejects_malformed(raw):
    with pytest.raises(ValueError):
        CandidateElement.from_dict(raw)


def test_analysis_yes_keeps_valid_candidates_only():
    analysis = ElementAnalysis.from_dict({
        'interactionNeeded': 'yes',
        'analysis': "Tabs hide the specs",
        'elements': [{'selector': '#tab-1'}, {'textContent': 'no selector'}],
    })

    assert analysis.interaction_needed is True
    assert [e.selector for e in analysis.elements] == ['#tab-1']


def test_analysis_no_ignores_elements():
    analysis = ElementAnalysis.from_dict({
        'interactionNeeded': 'NO',
        'elements': [{'selector': '#tab-1'}],
    })

    assert analysis.interaction_needed is False
    assert analysis.elements == []


@pytest.mark.parametrize("raw", [
    {'interactionNeeded': 'MAYBE'},
    {'interactionNeeded': 'YES', 'elements': 'button'},
    ['YES'],
])
def test_analysis_rejects_malformed(raw):
    with pytest.raises(ValueError):
        ElementAnalysis.from_dict(raw)


def test_locator_requires_xpath():
    with pytest.raises(ValueError):
        Locator(xpath='')


def test_observed_change_from_tracker_payload():
    change = ObservedChange.from_dict({
        'changeType': 'elementAdded',
        'xpath': "//*[@id='panel']",
        'cssPath': 'html > body > div',
        'boundingBox': {'x': 0, 'y': 10, 'width': 200, 'height': 50},
        'timestamp': 1700000000000,
        'textLength': 42,
        'outerHTML': '<div id="panel">Specs</div>',
    })

    assert change.change_type == ChangeType.ELEMENT_ADDED
    assert change.priority == 5
    assert change.locator.bounding_box.height == 50
    assert change.text_length == 42


def test_observed_change_rejects_unknown_type():
    with pytest.raises(ValueError):
        ObservedChange.from_dict({'changeType': 'removed', 'xpath': '//div'})


def test_change_priorities_are_ordered():
    assert (
        ObservedChange(ChangeType.ELEMENT_ADDED, Locator('//a'), 0).priority
        > ObservedChange(ChangeType.NEWLY_VISIBLE, Locator('//a'), 0).priority
        > ObservedChange(ChangeType.ATTRIBUTE_CHANGED, Locator('//a'), 0).priority
    )


def test_result_status():
    assert ScrapeResult(True, 'u', ScrapeMode.NORMAL).status == 'success'
    assert ScrapeResult(True, 'u', ScrapeMode.BEAST, enhanced_error=Exception()).status == 'partial'
    assert ScrapeResult(False, 'u', ScrapeMode.BEAST, error='x').status == 'failed'
