"""Source text clean-up applied to every template before resolution."""

from __future__ import annotations

from prompt_manager.config.app import RenderOptions


def split_notes(text: str, end_marker: str = "__END__") -> tuple[str, str | None]:
    """Split text at the first line equal to end_marker.

    Returns:
        Tuple of (content before the marker, notes after it). Notes is None
        when there is no marker line.
    """
    lines = text.split("\n")
    for index, line in enumerate(lines):
        if line.strip() == end_marker:
            return "\n".join(lines[:index]), "\n".join(lines[index + 1 :])
    return text, None


def strip_comment_header(text: str, comment_marker: str = "#") -> str:
    """Drop the comment lines (and blank lines among them) that open the text.

    Comment lines after the first content or directive line are kept.
    """
    lines = text.split("\n")
    seen_comment = False
    for index, line in enumerate(lines):
        stripped = line.strip()
        if not stripped:
            continue
        if stripped.startswith(comment_marker):
            seen_comment = True
            continue
        return "\n".join(lines[index:]) if seen_comment else text
    return "" if seen_comment else text


def preprocess(text: str, options: RenderOptions | None = None) -> tuple[str, str | None]:
    """Strip the notes section and, if enabled, the comment header.

    Returns:
        Tuple of (processable body, notes or None)
    """
    options = options or RenderOptions()
    body, notes = split_notes(text, options.end_marker)
    if options.strip_comments:
        body = strip_comment_header(body, options.comment_marker)
    return body, notes
