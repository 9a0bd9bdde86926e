import logging
from typing import Any, Dict, List, Optional

from meetings.services import get_visible_meeting, is_creator, visible_meetings
from timetomeet import ordering
from timetomeet.exceptions import Conflict, InvalidRequest, NotFound, PermissionDenied
from .models import DiscussionItem

logger = logging.getLogger(__name__)


def get_item_for_user(item_id: int, user) -> DiscussionItem:
    item = (DiscussionItem.objects.filter(id=item_id, meeting__in=visible_meetings(user))
            .select_related('meeting').first())
    if item is None:
        raise NotFound(f"Discussion item with id {item_id} not found")
    return item


def list_items(meeting, status: Optional[str] = DiscussionItem.Status.PENDING):
    queryset = DiscussionItem.objects.filter(meeting=meeting)
    if status:
        queryset = queryset.filter(status=status)
    return queryset.order_by('order_index', 'created_at', 'id')


def create_item(meeting, user, data: Dict[str, Any]) -> DiscussionItem:
    # New items go to the end of the pending list.
    position = DiscussionItem.objects.filter(meeting=meeting, status=DiscussionItem.Status.PENDING).count()
    item = DiscussionItem.objects.create(
        meeting=meeting,
        title=data['title'],
        description=data.get('description') or "",
        status=DiscussionItem.Status.PENDING,
        order_index=position,
        created_by=user,
    )
    logger.info(f"User {user.pk} added discussion item {item.id} to meeting {meeting.id} at position {position}.")
    return item


def update_item(item: DiscussionItem, user, changes: Dict[str, Any]) -> DiscussionItem:
    if item.created_by_id != user.pk:
        raise PermissionDenied("Only the item creator can edit this discussion item")
    if changes.get('title') is not None:
        item.title = changes['title']
    if 'description' in changes:
        item.description = changes['description'] or ""
    item.save()
    logger.info(f"Discussion item {item.id} updated by user {user.pk}.")
    return item


def _require_moderator(item: DiscussionItem, user, action: str) -> None:
    if item.created_by_id != user.pk and not is_creator(item.meeting, user):
        logger.warning(f"User {user.pk} attempted to {action} discussion item {item.id}.")
        raise PermissionDenied(f"Only the item creator or the meeting creator can {action} this discussion item")


def set_status(item: DiscussionItem, user, status: str) -> DiscussionItem:
    """Marks an item done, or reopens it. The stored position is left as it is."""
    _require_moderator(item, user, "update")
    if item.status != status:
        item.status = status
        item.save(update_fields=['status', 'updated_at'])
        logger.info(f"Discussion item {item.id} marked {status} by user {user.pk}.")
    return item


def delete_item(item: DiscussionItem, user) -> None:
    _require_moderator(item, user, "delete")
    item_id = item.id
    item.delete()
    logger.info(f"Discussion item {item_id} deleted by user {user.pk}.")


def reorder_items(meeting_id: int, user, ordered_ids: List[int], source_index: int, destination_index: int,
                  status: Optional[str] = DiscussionItem.Status.PENDING) -> List[int]:
    meeting = get_visible_meeting(meeting_id, user)
    stored_ids = list(list_items(meeting, status=status).values_list('id', flat=True))
    if not ordering.same_members(ordered_ids, stored_ids):
        logger.info(f"Discussion reorder in meeting {meeting.id} refused: the list changed since it was loaded.")
        raise Conflict("The discussion list has changed since it was loaded. Refresh and try again.")
    try:
        return ordering.reorder(DiscussionItem, ordered_ids, source_index, destination_index)
    except ValueError as e:
        raise InvalidRequest(str(e)) from e
