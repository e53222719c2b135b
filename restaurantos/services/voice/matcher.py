"""
Menu Item Matcher

Maps a free-text item name (as returned by the AI backend) to a menu entry.
Three passes, each scanning the menu in its given order and returning the
first hit:

    1. exact name, case-insensitive
    2. substring in either direction
    3. word overlap: some word of the spoken name and some word of the menu
       name contain one another
"""

from typing import Optional, Protocol, Sequence, TypeVar


class Named(Protocol):
    name: str


T = TypeVar("T", bound=Named)


def _words(text: str) -> list[str]:
    return text.lower().split()


def match_menu_item(name: str, menu_items: Sequence[T]) -> Optional[T]:
    """
    Find the menu item ``name`` refers to.

    Args:
        name: Item name from the parsed order
        menu_items: Candidates, in display order

    Returns:
        The first matching menu item, or None
    """
    needle = (name or "").strip().lower()
    if not needle:
        return None

    for item in menu_items:
        if item.name.lower() == needle:
            return item

    for item in menu_items:
        candidate = item.name.lower()
        if needle in candidate or candidate in needle:
            return item

    spoken_words = _words(needle)
    for item in menu_items:
        menu_words = _words(item.name)
        if any(
            menu_word in word or word in menu_word
            for word in spoken_words
            for menu_word in menu_words
        ):
            return item

    return None
