from typing import List, Optional
import logging
from ninja import Router
from ninja_jwt.authentication import JWTAuth
from meetings.services import get_visible_meeting
from timetomeet.exceptions import ServiceError
from . import services
from .schemas import (TodoSchemaIn, TodoSchemaOut, TodoSchemaUpdate, PersonalTodoSchemaIn, TodoStatusEnum, TodoScopeEnum,
                      ReorderSchemaIn, ReorderSchemaOut, ErrorDetail)

router = Router(tags=["todos"])
logger = logging.getLogger(__name__)

SAVE_ORDER_FAILED = "Failed to save the new order. Reload the list to see the current order."


@router.post("/meeting/{meeting_id}/", response={201: TodoSchemaOut, 400: ErrorDetail, 404: ErrorDetail}, auth=JWTAuth(),
             summary="Create Meeting Todo",
             description="""
             Adds an action item to a meeting.

             **Details:**
             - Any participant of the meeting may add todos.
             - Assign by `assigned_to` (user id) or by `assigned_email`; an account matching the email is linked automatically.
             - New todos start as `pending`.
             """
             )
def create_meeting_todo(request, meeting_id: int, data: TodoSchemaIn):
    try:
        meeting = get_visible_meeting(meeting_id, request.auth)
        return 201, services.create_meeting_todo(meeting, request.auth, data.dict())
    except ServiceError as e:
        return e.status_code, {"detail": e.detail}
    except Exception as e:
        logger.error(f"Error creating todo for meeting {meeting_id}: {e}", exc_info=True)
        return 400, {"detail": str(e)}


@router.get("/meeting/{meeting_id}/", response={200: List[TodoSchemaOut], 404: ErrorDetail}, auth=JWTAuth(),
            summary="List Meeting Todos",
            description="""
            Lists a meeting's todos in display order: manual position first (when ordering is enabled),
            then due date with undated tasks last, then newest first.
            """
            )
def list_meeting_todos(request, meeting_id: int, status: Optional[TodoStatusEnum] = None):
    try:
        meeting = get_visible_meeting(meeting_id, request.auth)
    except ServiceError as e:
        return e.status_code, {"detail": e.detail}
    return 200, services.meeting_todos(meeting, status=status.value if status else None)


@router.post("/", response={201: TodoSchemaOut, 400: ErrorDetail}, auth=JWTAuth(), summary="Create Personal Task",
             description="Creates a standalone task, not tied to any meeting, assigned to the caller.")
def create_personal_todo(request, data: PersonalTodoSchemaIn):
    try:
        return 201, services.create_personal_todo(request.auth, data.dict())
    except Exception as e:
        logger.error(f"Error creating personal task for user {request.auth.pk}: {e}", exc_info=True)
        return 400, {"detail": str(e)}


@router.get("/mine/", response={200: List[TodoSchemaOut], 400: ErrorDetail}, auth=JWTAuth(), summary="List My Tasks",
            description="""
            Tasks across all meetings plus standalone tasks.

            **Filtering (Query Parameters):**
            - `scope`: `all` (default), `assigned` (assigned to me) or `created` (created by me).
            - `status`: `pending` or `done`.
            """
            )
def list_my_todos(request, scope: TodoScopeEnum = TodoScopeEnum.ALL, status: Optional[TodoStatusEnum] = None):
    try:
        return 200, services.my_todos(request.auth, scope=scope.value, status=status.value if status else None)
    except ServiceError as e:
        return e.status_code, {"detail": e.detail}


@router.post("/reorder/", response={200: ReorderSchemaOut, 400: ErrorDetail, 404: ErrorDetail, 409: ErrorDetail, 500: ErrorDetail},
             auth=JWTAuth(),
             summary="Reorder Tasks",
             description="""
             Moves one task from `source_index` to `destination_index` in the displayed list and rewrites the
             positions of the tasks that moved.

             **On Failure:**
                 - `400 Bad Request` if an index is outside the list.
                 - `409 Conflict` if task ordering is not enabled on this deployment, or if `ids` no longer matches
                   the stored list (a task was added or removed since the list was loaded).
                 - `500 Internal Server Error` if the new positions could not be saved. Some tasks may already have
                   moved; reload the list before trying again.
             """
             )
def reorder_todos(request, data: ReorderSchemaIn):
    try:
        ids = services.reorder_todos(request.auth, data.ids, data.source_index, data.destination_index,
                                     meeting_id=data.meeting_id, status=data.status.value if data.status else None)
        return 200, {"ids": ids}
    except ServiceError as e:
        return e.status_code, {"detail": e.detail}
    except Exception as e:
        logger.error(f"Error saving task order for user {request.auth.pk}: {e}", exc_info=True)
        return 500, {"detail": SAVE_ORDER_FAILED}


@router.get("/{todo_id}/", response={200: TodoSchemaOut, 404: ErrorDetail}, auth=JWTAuth(), summary="Get Todo by ID")
def get_todo(request, todo_id: int):
    try:
        return 200, services.get_todo_for_user(todo_id, request.auth)
    except ServiceError as e:
        return e.status_code, {"detail": e.detail}


@router.put("/{todo_id}/", response={200: TodoSchemaOut, 400: ErrorDetail, 403: ErrorDetail, 404: ErrorDetail}, auth=JWTAuth(),
            summary="Update Todo",
            description="Partially updates a todo. Only its creator or assignee may edit it.")
def update_todo(request, todo_id: int, data: TodoSchemaUpdate):
    try:
        todo = services.get_todo_for_user(todo_id, request.auth)
        changes = data.dict(exclude_unset=True)
        if changes.get('status') is not None:
            changes['status'] = changes['status'].value
        return 200, services.update_todo(todo, request.auth, changes)
    except ServiceError as e:
        return e.status_code, {"detail": e.detail}
    except Exception as e:
        logger.error(f"Error updating todo {todo_id}: {e}", exc_info=True)
        return 400, {"detail": str(e)}


@router.post("/{todo_id}/toggle/", response={200: TodoSchemaOut, 403: ErrorDetail, 404: ErrorDetail}, auth=JWTAuth(),
             summary="Toggle Todo Status",
             description="Flips a todo between `pending` and `done`. Only its creator or assignee may do this.")
def toggle_todo(request, todo_id: int):
    try:
        todo = services.get_todo_for_user(todo_id, request.auth)
        return 200, services.toggle_todo(todo, request.auth)
    except ServiceError as e:
        return e.status_code, {"detail": e.detail}


@router.delete("/{todo_id}/", response={204: None, 403: ErrorDetail, 404: ErrorDetail}, auth=JWTAuth(), summary="Delete Todo")
def delete_todo(request, todo_id: int):
    try:
        todo = services.get_todo_for_user(todo_id, request.auth)
        services.delete_todo(todo, request.auth)
        return 204, None
    except ServiceError as e:
        return e.status_code, {"detail": e.detail}
