import re

_TAG_RE = re.compile(r"<[^>]*>")
_SPACE_RE = re.compile(r"\s+")


def strip_html_tags(html: str | None) -> str:
    """Replace tags with spaces and collapse whitespace."""
    if not html:
        return ""
    return _SPACE_RE.sub(" ", _TAG_RE.sub(" ", html)).strip()


def truncate_text(text: str | None, max_length: int) -> str:
    if not text:
        return ""
    if len(text) <= max_length:
        return text
    return text[:max_length] + "..."


def format_notification_body(html: str | None, max_length: int = 100) -> str:
    """Plain-text push body from editor HTML."""
    return truncate_text(strip_html_tags(html), max_length)
