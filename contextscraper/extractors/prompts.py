"""Prompt builders for the Gemini calls."""

from typing import Optional


def build_element_analysis_prompt(html: str, query: Optional[str] = None) -> str:
    """Prompt asking which elements load content that is not yet in the DOM."""
    focus = ""
    if query:
        focus = f"""
USER FOCUS: The user is looking for: "{query}"
- First search the HTML (including hidden panels, collapsed sections, data attributes)
  for content about "{query}".
- Only recommend elements that load content about "{query}" which is NOT already in the DOM.
- Ignore every other interactive element, even if it loads dynamic content.
"""

    return f"""You are an HTML analyst. Decide whether any interaction is needed to reveal
content that is NOT already present in this page's DOM.

STEP 1 - IS INTERACTION NEEDED?

Answer "NO" when the relevant content already exists in the HTML, even if hidden with CSS
(display:none, visibility:hidden, collapsed accordions, inactive tab panels, closed modals).

Answer "YES" only when:
- content is loaded by JavaScript/AJAX on interaction and is absent from the DOM now
- tab panels or accordion sections are empty placeholders filled on click
- "load more" style controls fetch additional items
- AND that content is valuable for this kind of page
{focus}
STEP 2 - IF YES, LIST THE ELEMENTS

Include only elements that load or generate NEW content. Exclude:
- links and anything that navigates to another page or opens a new tab
- form submissions, login/signup, pagination, breadcrumbs, site menus, search
- copy buttons, theme or language toggles, cookie banners, social widgets
- toggles that only show or hide content already in the DOM

Selector rules (Playwright must click them reliably):
- Prefer text selectors: text="Show more"
- Otherwise ONE simple attribute or class: button[aria-label="Load reviews"], [data-testid="tab-specs"], .load-more
- Never generic tags alone (button, div, span), never :nth-child/:has()/:is(), never descendant combinators
- Never state attributes (aria-expanded, data-state) or framework ids (radix-*)
- Each selector must be unique; for repeated identical controls give one representative selector
- If no simple stable selector exists, skip the element

Interaction types: click, hover, focus, scroll.

HTML to analyze:
```html
{html}
```

Respond with ONLY a JSON object in exactly this structure:
{{
  "interactionNeeded": "YES" or "NO",
  "analysis": "Brief explanation of your decision",
  "elements": [
    {{
      "selector": "CSS or text= selector",
      "textContent": "Text of the element",
      "interactionType": "click",
      "reason": "What new content it loads and why it matters"
    }}
  ]
}}

"elements" must be [] when interactionNeeded is "NO". Use double quotes and no trailing commas.
"""


def build_markdown_improvement_prompt(markdown: str, query: Optional[str] = None) -> str:
    """Prompt asking Gemini to clean up converted Markdown, optionally narrowed to a query."""
    if query:
        scope = f"""Keep ONLY the content that relates to: "{query}".
Include the examples, tables and technical details for that topic, drop navigation,
sidebars, footers and unrelated sections.
If nothing relates to "{query}", answer exactly: No content found related to "{query}"."""
    else:
        scope = "Keep ALL information. Do not summarize or drop sections."

    return f"""Fix and improve this Markdown, which was converted automatically from HTML.

{scope}

Fix:
- broken tables (proper | separators and header rows)
- lists (use - for unordered, numbers for ordered)
- heading levels (#, ##, ###)
- malformed links [text](url)
- code blocks (``` with a language tag when obvious)
- leftover HTML tags, entities and conversion artifacts
- excessive blank lines and duplicated sections

Return the Markdown directly. Do NOT wrap it in code fences.

Markdown to process:
```markdown
{markdown}
```
"""
