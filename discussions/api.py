from typing import List, Optional
import logging
from ninja import Router
from ninja_jwt.authentication import JWTAuth
from meetings.services import get_visible_meeting
from timetomeet.exceptions import ServiceError
from . import services
from .models import DiscussionItem
from .schemas import (DiscussionItemSchemaIn, DiscussionItemSchemaOut, DiscussionItemSchemaUpdate, DiscussionStatusEnum,
                      ReorderSchemaIn, ReorderSchemaOut, ErrorDetail)

router = Router(tags=["discussions"])
logger = logging.getLogger(__name__)

SAVE_ORDER_FAILED = "Failed to save the new order. Reload the list to see the current order."


@router.post("/meeting/{meeting_id}/", response={201: DiscussionItemSchemaOut, 400: ErrorDetail, 404: ErrorDetail}, auth=JWTAuth(),
             summary="Add Discussion Item",
             description="""
             Adds a topic to a meeting's agenda. Any participant may add items.
             The new item is placed at the end of the pending list.
             """
             )
def create_item(request, meeting_id: int, data: DiscussionItemSchemaIn):
    try:
        meeting = get_visible_meeting(meeting_id, request.auth)
        return 201, services.create_item(meeting, request.auth, data.dict())
    except ServiceError as e:
        return e.status_code, {"detail": e.detail}
    except Exception as e:
        logger.error(f"Error adding discussion item to meeting {meeting_id}: {e}", exc_info=True)
        return 400, {"detail": str(e)}


@router.get("/meeting/{meeting_id}/", response={200: List[DiscussionItemSchemaOut], 404: ErrorDetail}, auth=JWTAuth(),
            summary="List Discussion Items",
            description="Lists a meeting's discussion items by position. `status` defaults to `pending`.")
def list_items(request, meeting_id: int, status: Optional[DiscussionStatusEnum] = DiscussionStatusEnum.PENDING):
    try:
        meeting = get_visible_meeting(meeting_id, request.auth)
    except ServiceError as e:
        return e.status_code, {"detail": e.detail}
    return 200, services.list_items(meeting, status=status.value if status else None)


@router.post("/meeting/{meeting_id}/reorder/",
             response={200: ReorderSchemaOut, 400: ErrorDetail, 404: ErrorDetail, 409: ErrorDetail, 500: ErrorDetail}, auth=JWTAuth(),
             summary="Reorder Discussion Items",
             description="""
             Moves one item from `source_index` to `destination_index` within the listed items and stores the new positions.
             Moving an item onto its own position changes nothing.

             **On Failure:**
                 - `400 Bad Request` if an index is outside the list.
                 - `409 Conflict` if `ids` no longer matches the stored list (an item was added, removed or
                   changed status since the list was loaded).
                 - `500 Internal Server Error` if the new positions could not be saved. Some items may already
                   have moved; reload the list before trying again.
             """
             )
def reorder_items(request, meeting_id: int, data: ReorderSchemaIn):
    try:
        ids = services.reorder_items(meeting_id, request.auth, data.ids, data.source_index, data.destination_index,
                                     status=data.status.value if data.status else None)
        return 200, {"ids": ids}
    except ServiceError as e:
        return e.status_code, {"detail": e.detail}
    except Exception as e:
        logger.error(f"Error saving discussion order in meeting {meeting_id}: {e}", exc_info=True)
        return 500, {"detail": SAVE_ORDER_FAILED}


@router.put("/{item_id}/", response={200: DiscussionItemSchemaOut, 403: ErrorDetail, 404: ErrorDetail}, auth=JWTAuth(),
            summary="Update Discussion Item")
def update_item(request, item_id: int, data: DiscussionItemSchemaUpdate):
    try:
        item = services.get_item_for_user(item_id, request.auth)
        return 200, services.update_item(item, request.auth, data.dict(exclude_unset=True))
    except ServiceError as e:
        return e.status_code, {"detail": e.detail}


@router.post("/{item_id}/done/", response={200: DiscussionItemSchemaOut, 403: ErrorDetail, 404: ErrorDetail}, auth=JWTAuth(),
             summary="Mark Discussion Item Done",
             description="Marks the item as discussed. Allowed for the item creator and the meeting creator.")
def mark_done(request, item_id: int):
    try:
        item = services.get_item_for_user(item_id, request.auth)
        return 200, services.set_status(item, request.auth, DiscussionItem.Status.DONE)
    except ServiceError as e:
        return e.status_code, {"detail": e.detail}


@router.post("/{item_id}/reopen/", response={200: DiscussionItemSchemaOut, 403: ErrorDetail, 404: ErrorDetail}, auth=JWTAuth(),
             summary="Reopen Discussion Item")
def reopen(request, item_id: int):
    try:
        item = services.get_item_for_user(item_id, request.auth)
        return 200, services.set_status(item, request.auth, DiscussionItem.Status.PENDING)
    except ServiceError as e:
        return e.status_code, {"detail": e.detail}


@router.delete("/{item_id}/", response={204: None, 403: ErrorDetail, 404: ErrorDetail}, auth=JWTAuth(),
               summary="Delete Discussion Item")
def delete_item(request, item_id: int):
    try:
        item = services.get_item_for_user(item_id, request.auth)
        services.delete_item(item, request.auth)
        return 204, None
    except ServiceError as e:
        return e.status_code, {"detail": e.detail}
