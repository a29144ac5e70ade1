"""Computes the differences between a source and a destination collection."""

from typing import Callable, Hashable, Sequence, TypeVar

from gitlab_ops_manager.synchronize.models import DiffResult

T = TypeVar("T")


def chronological(items: Sequence[T]) -> list[T]:
    """Return items oldest first.

    Items are sorted by ``created_at`` when every item has one. Otherwise the
    list is assumed to be in GitLab's default newest-first order and is reversed.
    """
    if items and all(getattr(item, "created_at", None) for item in items):
        return sorted(items, key=lambda item: getattr(item, "created_at"))
    return list(reversed(items))


def compute_diff(
    source_items: Sequence[T],
    destination_items: Sequence[T],
    key: Callable[[T], Hashable],
    remove: bool = False,
    differs: Callable[[T, T], bool] | None = None,
) -> DiffResult[T]:
    """Compare two collections by natural key.

    Args:
        source_items: The desired items, in the order creations should happen.
        destination_items: The items currently in the destination.
        key: Returns the natural key of an item (name, title, user ID).
        remove: Whether destination items missing from the source should be removed.
        differs: Returns True when a matched (source, destination) pair needs an update.
            When omitted, matched items are never updated.

    Returns:
        The items to create, update and remove. Only the first source item with a
        given key is considered.
    """
    destination_by_key = {key(item): item for item in destination_items}
    result: DiffResult[T] = DiffResult()
    seen: set[Hashable] = set()
    for item in source_items:
        item_key = key(item)
        if item_key in seen:
            continue
        seen.add(item_key)
        existing = destination_by_key.get(item_key)
        if existing is None:
            result.to_create.append(item)
        elif differs is not None and differs(item, existing):
            result.to_update.append((item, existing))

    if remove:
        result.to_remove = [item for item_key, item in destination_by_key.items() if item_key not in seen]
    return result
