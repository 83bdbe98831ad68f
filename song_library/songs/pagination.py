"""
Paginated segmentation of lyric text.

A song's text is split on newlines into an ordered sequence of lines
(empty lines included) and a page-sized window of it is returned.
Out-of-range windows yield an empty list instead of failing.
"""

from song_library.songs.models import DEFAULT_PAGE, DEFAULT_PAGE_SIZE, PaginationWindow


LINE_SEPARATOR = "\n"


def split_lines(text: str) -> list[str]:
    """Split text on newlines, keeping empty lines. "" yields [""]."""
    return text.split(LINE_SEPARATOR)


def paginate(text: str, page: int = DEFAULT_PAGE, page_size: int = DEFAULT_PAGE_SIZE) -> list[str]:
    """
    Return one page of the lines of text.

    Args:
        text: Lyric text.
        page: 1-based page number.
        page_size: Lines per page.

    Returns:
        Lines start..end of the text, where start = (page-1) * page_size
        and end = min(start + page_size, total lines). An empty list when
        start falls outside the text or page_size is below 1.

    Example:
        >>> paginate("a\\nb\\nc\\nd\\ne", page=2, page_size=2)
        ['c', 'd']
        >>> paginate("a\\nb", page=5, page_size=2)
        []
    """
    lines = split_lines(text)
    window = PaginationWindow(page=page, page_size=page_size)

    if not window.is_within(len(lines)):
        return []

    return lines[window.start:window.end(len(lines))]
