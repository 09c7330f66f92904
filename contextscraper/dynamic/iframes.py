"""Inline iframe content into the parent document."""


FRAME_CONTENT_JS = """
() => {
  const main = document.querySelector('main');
  if (main && main.innerHTML.trim()) return main.innerHTML;
  if (document.body) {
    const body = document.body.cloneNode(true);
    body.querySelectorAll('script, style, head').forEach((el) => el.remove());
    if (body.innerHTML.trim()) return body.innerHTML;
    const text = (document.body.innerText || '').trim();
    if (text) return `<p>${text.replace(/&/g, '&amp;').replace(/</g, '&lt;')}</p>`;
  }
  return '';
}
"""

REPLACE_IFRAME_JS = """
(iframe, {content, src}) => {
  const container = document.createElement('div');
  container.className = 'iframe-content-replacement';
  container.setAttribute('data-original-iframe-src', src || '');
  container.innerHTML = content;
  iframe.parentNode.replaceChild(container, iframe);
}
"""


async def inline_iframes(page, load_timeout: int = 5000) -> int:
    """
    Replace every readable iframe with a div holding its content.

    Frames that cannot be read (cross-origin, timeouts, detached) are
    reported and left in place.

    Returns:
        Number of iframes inlined
    """
    inlined = 0

    for frame in page.frames:
        if frame == page.main_frame:
            continue

        try:
            iframe = await frame.frame_element()
            if not iframe:
                continue

            src = await iframe.evaluate(
                "el => el.src || (el.getAttribute('srcdoc') ? 'srcdoc' : 'inline')"
            )

            try:
                await frame.wait_for_load_state('domcontentloaded', timeout=load_timeout)
            except Exception as e:
                print(f"    ⚠ Iframe load timeout for {src}, proceeding anyway: {e}")

            content = await frame.evaluate(FRAME_CONTENT_JS)
            if not content or not content.strip():
                print(f"    → No content found in iframe: {src}")
                continue

            await iframe.evaluate(REPLACE_IFRAME_JS, {'content': content, 'src': src})
            inlined += 1

        except Exception as e:
            message = str(e)
            print(f"    ✗ Cannot access iframe ({frame.url}): {message.splitlines()[0] if message else e!r}")
            if 'cross-origin' in message.lower():
                print("      → Cross-origin restriction detected")
            elif 'timeout' in message.lower():
                print("      → Frame loading timeout")

    if inlined:
        print(f"  ✓ Inlined {inlined} iframe(s)")
    return inlined
