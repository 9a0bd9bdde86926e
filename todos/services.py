import logging
from typing import Any, Dict, List, Optional
from django.conf import settings
from django.contrib.auth import get_user_model
from django.db.models import F, Q

from accounts.services import find_user_by_email, normalize_email
from meetings.services import get_visible_meeting, visible_meetings
from timetomeet import ordering
from timetomeet.exceptions import Conflict, FeatureDisabled, InvalidRequest, NotFound, PermissionDenied
from .models import Todo

logger = logging.getLogger(__name__)
UserModel = get_user_model()

EDITABLE_FIELDS = ('title', 'description', 'due_date', 'status')
STALE_LIST_MESSAGE = "The task list has changed since it was loaded. Refresh and try again."


def ordering_enabled() -> bool:
    return bool(getattr(settings, 'TODO_ORDERING_ENABLED', False))


def ordered(queryset):
    """
    Display order for todo lists: `order_index`, then `due_date`, then newest first.
    Without ordering support the `order_index` key is dropped.
    """
    keys = [F('due_date').asc(nulls_last=True), F('created_at').desc()]
    if ordering_enabled():
        keys.insert(0, F('order_index').asc(nulls_last=True))
    return queryset.order_by(*keys, '-id')


def can_manage(todo: Todo, user) -> bool:
    return user.pk in (todo.created_by_id, todo.assigned_to_id)


def require_manager(todo: Todo, user, action: str) -> None:
    if not can_manage(todo, user):
        logger.warning(f"User {user.pk} attempted to {action} todo {todo.id} without being its creator or assignee.")
        raise PermissionDenied(f"Only the creator or assignee can {action} this task")


def get_todo_for_user(todo_id: int, user) -> Todo:
    condition = Q(created_by=user) | Q(assigned_to=user) | Q(meeting__in=visible_meetings(user))
    todo = Todo.objects.filter(condition, id=todo_id).select_related('meeting', 'assigned_to', 'created_by').first()
    if todo is None:
        raise NotFound(f"Todo with id {todo_id} not found")
    return todo


def resolve_assignee(assigned_to_id: Optional[int], assigned_email: Optional[str]):
    if assigned_to_id:
        assignee = UserModel.objects.filter(pk=assigned_to_id).first()
        if assignee is None:
            raise InvalidRequest(f"User with id {assigned_to_id} not found")
        return assignee, normalize_email(assigned_email) or assignee.email or None
    email = normalize_email(assigned_email)
    if email:
        return find_user_by_email(email), email
    return None, None


def create_meeting_todo(meeting, user, data: Dict[str, Any]) -> Todo:
    assignee, email = resolve_assignee(data.get('assigned_to'), data.get('assigned_email'))
    todo = Todo.objects.create(
        meeting=meeting,
        title=data['title'],
        description=data.get('description') or "",
        assigned_to=assignee,
        assigned_email=email,
        created_by=user,
        due_date=data.get('due_date'),
        status=Todo.Status.PENDING,
    )
    logger.info(f"User {user.pk} created todo {todo.id} in meeting {meeting.id}.")
    return todo


def create_personal_todo(user, data: Dict[str, Any]) -> Todo:
    todo = Todo.objects.create(
        meeting=None,
        title=data['title'],
        description=data.get('description') or "",
        assigned_to=user,
        assigned_email=normalize_email(user.email) or None,
        created_by=user,
        due_date=data.get('due_date'),
        status=Todo.Status.PENDING,
    )
    logger.info(f"User {user.pk} created standalone todo {todo.id}.")
    return todo


def meeting_todos(meeting, status: Optional[str] = None):
    queryset = Todo.objects.filter(meeting=meeting).select_related('assigned_to', 'created_by')
    if status:
        queryset = queryset.filter(status=status)
    return ordered(queryset)


def my_todos(user, scope: str = "all", status: Optional[str] = None, standalone_only: bool = False):
    if scope == "assigned":
        condition = Q(assigned_to=user)
    elif scope == "created":
        condition = Q(created_by=user)
    elif scope == "all":
        condition = Q(assigned_to=user) | Q(created_by=user)
    else:
        raise InvalidRequest("Scope must be one of 'all', 'assigned' or 'created'")

    queryset = Todo.objects.filter(condition).select_related('meeting', 'assigned_to', 'created_by')
    if standalone_only:
        queryset = queryset.filter(meeting__isnull=True)
    if status:
        queryset = queryset.filter(status=status)
    return ordered(queryset)


def update_todo(todo: Todo, user, changes: Dict[str, Any]) -> Todo:
    require_manager(todo, user, "edit")
    for field in EDITABLE_FIELDS:
        if field not in changes:
            continue
        value = changes[field]
        if field == 'description':
            value = value or ""
        elif value is None and field in ('title', 'status'):
            continue
        setattr(todo, field, value)
    if 'assigned_to' in changes or 'assigned_email' in changes:
        todo.assigned_to, todo.assigned_email = resolve_assignee(changes.get('assigned_to'), changes.get('assigned_email'))
    todo.save()
    logger.info(f"Todo {todo.id} updated by user {user.pk}.")
    return todo


def toggle_todo(todo: Todo, user) -> Todo:
    require_manager(todo, user, "update")
    todo.status = Todo.Status.DONE if todo.status == Todo.Status.PENDING else Todo.Status.PENDING
    todo.save(update_fields=['status', 'updated_at'])
    logger.info(f"Todo {todo.id} marked {todo.status} by user {user.pk}.")
    return todo


def delete_todo(todo: Todo, user) -> None:
    require_manager(todo, user, "delete")
    todo_id = todo.id
    todo.delete()
    logger.info(f"Todo {todo_id} deleted by user {user.pk}.")


def reorder_todos(user, ordered_ids: List[int], source_index: int, destination_index: int, meeting_id: Optional[int] = None,
                  status: Optional[str] = Todo.Status.PENDING) -> List[int]:
    """
    Moves one todo within the list the user is looking at: a meeting's todos when
    `meeting_id` is given, otherwise the user's own standalone tasks.

    `ordered_ids` is the list as the client displayed it. If rows were added to or
    removed from that list since, the move is refused with `Conflict`.
    """
    if not ordering_enabled():
        raise FeatureDisabled("Task reordering is not available")

    if meeting_id is not None:
        queryset = meeting_todos(get_visible_meeting(meeting_id, user), status=status)
    else:
        queryset = my_todos(user, status=status, standalone_only=True)

    stored_ids = list(queryset.values_list('id', flat=True))
    if not ordering.same_members(ordered_ids, stored_ids):
        logger.info(f"Todo reorder by user {user.pk} refused: the list changed since it was loaded.")
        raise Conflict(STALE_LIST_MESSAGE)
    try:
        return ordering.reorder(Todo, ordered_ids, source_index, destination_index)
    except ValueError as e:
        raise InvalidRequest(str(e)) from e
