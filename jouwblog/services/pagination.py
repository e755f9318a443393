from typing import List, Optional, Sequence, TypeVar

T = TypeVar('T')


def get_page(items: Optional[Sequence[T]], page_number: int, page_size: int) -> List[T]:
    """Slice a 1-based page out of ``items``."""
    if page_size <= 0 or page_number <= 0:
        raise ValueError("Invalid page size or page number")

    from_index = (page_number - 1) * page_size
    if items is None or from_index >= len(items):
        return []

    to_index = min(from_index + page_size, len(items))
    return list(items[from_index:to_index])


def holds_all(available: int, total: int) -> bool:
    """
    True when a cache tier holds an owner's complete set.

    Tiers are filled by single reads and by whichever pages were asked for
    first, so only a complete set can be sliced into correctly ordered pages.
    """
    return available == total


def skip_for(page_number: int, page_size: int) -> int:
    return (page_number - 1) * page_size
