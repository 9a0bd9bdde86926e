import logging
from typing import Any, List, Sequence

logger = logging.getLogger(__name__)


def move_item(sequence: Sequence[Any], source_index: int, destination_index: int) -> List[Any]:
    """
    Returns a copy of `sequence` with the element at `source_index` removed and
    re-inserted at `destination_index`. No other element changes relative order.
    """
    size = len(sequence)
    if not 0 <= source_index < size:
        raise ValueError(f"Source index {source_index} is out of range for a list of {size} items.")
    if not 0 <= destination_index < size:
        raise ValueError(f"Destination index {destination_index} is out of range for a list of {size} items.")

    items = list(sequence)
    moved = items.pop(source_index)
    items.insert(destination_index, moved)
    return items


def same_members(ordered_ids: Sequence[int], stored_ids: Sequence[int]) -> bool:
    """True when `ordered_ids` holds exactly the rows in `stored_ids`, each once, in any order."""
    return len(ordered_ids) == len(set(ordered_ids)) and set(ordered_ids) == set(stored_ids)


def reorder(model, ordered_ids: Sequence[int], source_index: int, destination_index: int) -> List[int]:
    """
    Moves one row within the ordered list of `ordered_ids` and persists
    `order_index = position` for every row whose stored index changed.

    Updates are issued one row at a time without a surrounding transaction, so a
    failure part-way leaves the earlier rows already rewritten. Callers recover by
    re-reading the list.
    """
    if source_index == destination_index:
        logger.debug(f"Reorder of {model.__name__} skipped: source and destination are both {source_index}.")
        return list(ordered_ids)

    new_order = move_item(ordered_ids, source_index, destination_index)
    current = dict(model.objects.filter(id__in=new_order).values_list('id', 'order_index'))

    writes = 0
    for position, row_id in enumerate(new_order):
        if current.get(row_id) == position:
            continue
        model.objects.filter(id=row_id).update(order_index=position)
        writes += 1

    logger.info(f"Reordered {model.__name__}: moved position {source_index} -> {destination_index}, {writes} row(s) updated.")
    return new_order
