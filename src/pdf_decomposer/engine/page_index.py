"""Page Element Index: group extracted elements by source page."""

from collections.abc import Iterable, Mapping, Sequence

from .errors import EmptyInputError
from .models import (
    DEFAULT_PAGE_NUMBER,
    HEADER,
    NARRATIVE_TEXT,
    TITLE,
    PageElement,
    PageSynopsis,
)

# Character limit for the narrative preview in a page synopsis
PREVIEW_CHARS = 200


def resolve_page_number(element: PageElement) -> int:
    """Return the element's page, treating a missing or non-positive page as page 1."""
    page = element.page_number
    if page is None or page < 1:
        return DEFAULT_PAGE_NUMBER
    return page


def index_by_page(elements: Sequence[PageElement]) -> dict[int, list[PageElement]]:
    """Group elements by page number, keeping their original order within a page.

    Args:
        elements: Elements from the upstream extractor.

    Returns:
        Mapping of page number to that page's elements, keyed in ascending page order.

    Raises:
        EmptyInputError: If no elements are supplied.
    """
    if not elements:
        raise EmptyInputError("no page elements supplied; nothing to decompose")

    groups: dict[int, list[PageElement]] = {}
    for element in elements:
        groups.setdefault(resolve_page_number(element), []).append(element)

    return {page: groups[page] for page in sorted(groups)}


def total_pages(page_index: Mapping[int, Sequence[PageElement]]) -> int:
    """Total page count, taken as the highest page that carries an element."""
    if not page_index:
        raise EmptyInputError("page index is empty; nothing to decompose")
    return max(page_index)


def _texts_of(elements: Iterable[PageElement], element_type: str) -> list[str]:
    return [e.text for e in elements if e.type == element_type]


def build_synopses(
    page_index: Mapping[int, Sequence[PageElement]],
    preview_chars: int = PREVIEW_CHARS,
) -> list[PageSynopsis]:
    """Build one synopsis per indexed page, in ascending page order.

    Pages without elements are not in the index and therefore get no synopsis.
    """
    synopses = []
    for page in sorted(page_index):
        elements = page_index[page]
        first_narrative = next(
            (e.text for e in elements if e.type == NARRATIVE_TEXT), ""
        )
        synopses.append(
            PageSynopsis(
                page=page,
                titles=_texts_of(elements, TITLE),
                headers=_texts_of(elements, HEADER),
                preview=first_narrative[:preview_chars],
            )
        )
    return synopses
