"""HTML sanitation shared by the reconciler and the snapshot builder."""

import lxml.html


TABLE_TAGS = {
    'table', 'thead', 'tbody', 'tfoot', 'tr', 'th', 'td',
    'caption', 'colgroup', 'col'
}
VERBATIM_TAGS = {'iframe', 'code', 'pre'}

KEPT_ATTRIBUTES = {'class', 'id'}
KEPT_PREFIXES = ('data-', 'aria-')


def _keep_attribute(name: str) -> bool:
    return name in KEPT_ATTRIBUTES or name.startswith(KEPT_PREFIXES)


def _is_protected(element) -> bool:
    """Tables, iframes and code blocks keep their markup, descendants included."""
    tag = element.tag.lower()
    if tag in TABLE_TAGS or tag in VERBATIM_TAGS:
        return True
    for ancestor in element.iterancestors():
        if not isinstance(ancestor.tag, str):
            continue
        if ancestor.tag.lower() == 'table' or ancestor.tag.lower() in VERBATIM_TAGS:
            return True
    return False


def remove_elements(root, tags) -> int:
    """Drop every element with one of the given tags, keeping tail text."""
    removed = 0
    for element in list(root.iter(*tags)):
        if element is root:
            continue
        element.drop_tree()
        removed += 1
    return removed


def sanitize_tree(root):
    """
    Strip scripts, styles and non-essential attributes in place.

    Outside protected regions every element keeps only class, id, data-*
    and aria-* attributes. Running it twice changes nothing.
    """
    remove_elements(root, ('script', 'style'))

    for element in root.iter():
        if not isinstance(element.tag, str) or _is_protected(element):
            continue
        for name in list(element.attrib):
            if not _keep_attribute(name.lower()):
                del element.attrib[name]
    return root


def parse_document(html: str):
    """Parse a full page into an lxml root element."""
    if not html or not html.strip():
        html = '<html><body></body></html>'
    return lxml.html.document_fromstring(html)


def serialize(root) -> str:
    return lxml.html.tostring(root, encoding='unicode')


def sanitize_html(html: str) -> str:
    """Sanitize a full HTML document and return it serialized."""
    root = parse_document(html)
    sanitize_tree(root)
    return serialize(root)


def snapshot_for_analysis(html: str) -> str:
    """
    Reduced DOM snapshot sent to the content model.

    Same as sanitize_html() but also drops <link> elements, which carry
    nothing the model can use.
    """
    root = parse_document(html)
    remove_elements(root, ('link',))
    sanitize_tree(root)
    return serialize(root)
