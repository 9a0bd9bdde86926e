from typing import List, Optional
from datetime import date
import logging
from ninja import Router
from ninja_jwt.authentication import JWTAuth
from timetomeet.exceptions import ServiceError
from . import services
from .models import MeetingParticipant
from .schemas import (MeetingSchemaIn, MeetingSchemaOut, MeetingSchemaUpdate, MeetingStatusEnum, ParticipantSchemaOut,
                      InviteSchemaIn, InviteSchemaOut, InvitationResponseIn, EndMeetingSchemaOut, MeetingSummaryOut,
                      ErrorDetail)

router = Router(tags=["meetings"])
logger = logging.getLogger(__name__)


@router.post("/", response={201: MeetingSchemaOut, 400: ErrorDetail}, auth=JWTAuth(), summary="Create Meeting",
             description="""
             Schedules a new meeting owned by the authenticated user.

             **Details:**
             - Requires authentication via JWT.
             - `title`, `scheduled_date` and `scheduled_time` are mandatory; `duration_minutes` defaults to 60.
             - `frequency` is only stored when `is_recurring` is true.
             - The creator is added to the participant list as the `organizer`.

             **On Success:** Returns `201 Created` with the new meeting in `scheduled` status.
             **On Failure:** Returns `400 Bad Request` if creation fails, `422` if validation fails.
             """
             )
def create_meeting(request, data: MeetingSchemaIn):
    try:
        payload = data.dict()
        if payload.get('frequency') is not None:
            payload['frequency'] = payload['frequency'].value
        meeting = services.create_meeting(request.auth, payload)
        return 201, meeting
    except Exception as e:
        logger.error(f"Error creating meeting for user {request.auth.pk}: {e}", exc_info=True)
        return 400, {"detail": str(e)}


@router.get("/", response=List[MeetingSchemaOut], auth=JWTAuth(), summary="List Meetings",
            description="""
            Lists meetings the authenticated user created or was invited to.

            **Filtering (Query Parameters):**
            - `title`: case-insensitive containment search.
            - `status`: one of `scheduled`, `ended`, `closed`.
            - `date_from` / `date_to`: inclusive bounds on `scheduled_date` (`YYYY-MM-DD`).

            **Pagination (Query Parameters):**
            - `offset` (default 0) and `limit` (default 100).
            """
            )
def list_meetings(request, title: Optional[str] = None, status: Optional[MeetingStatusEnum] = None,
                  date_from: Optional[date] = None, date_to: Optional[date] = None, offset: int = 0, limit: int = 100):
    queryset = services.visible_meetings(request.auth)

    if title:
        queryset = queryset.filter(title__icontains=title)
    if status:
        queryset = queryset.filter(status=status.value)
    if date_from:
        queryset = queryset.filter(scheduled_date__gte=date_from)
    if date_to:
        queryset = queryset.filter(scheduled_date__lte=date_to)

    return queryset.order_by('scheduled_date', 'scheduled_time')[offset:offset + limit]


@router.get("/upcoming/", response=List[MeetingSchemaOut], auth=JWTAuth(), summary="List Upcoming Meetings",
            description="Meetings scheduled for today or later that are not closed, soonest first. Used by the dashboard.")
def list_upcoming_meetings(request, limit: int = 5):
    return services.upcoming_meetings(request.auth, limit=limit)


@router.get("/{meeting_id}/", response={200: MeetingSchemaOut, 404: ErrorDetail}, auth=JWTAuth(), summary="Get Meeting by ID")
def get_meeting(request, meeting_id: int):
    try:
        return 200, services.get_visible_meeting(meeting_id, request.auth)
    except ServiceError as e:
        return e.status_code, {"detail": e.detail}


@router.put("/{meeting_id}/", response={200: MeetingSchemaOut, 400: ErrorDetail, 403: ErrorDetail, 404: ErrorDetail},
            auth=JWTAuth(), summary="Update Meeting Settings",
            description="""
            Updates a meeting's settings partially. Only the fields present in the payload are changed.

            **Details:**
            - Requires authentication via JWT.
            - Only the meeting creator may edit it; other users receive `403 Forbidden`.
            - Setting `is_recurring` to false clears `frequency`.
            """
            )
def update_meeting(request, meeting_id: int, data: MeetingSchemaUpdate):
    try:
        meeting = services.get_visible_meeting(meeting_id, request.auth)
        changes = data.dict(exclude_unset=True)
        if changes.get('frequency') is not None:
            changes['frequency'] = changes['frequency'].value
        return 200, services.update_meeting(meeting, request.auth, changes)
    except ServiceError as e:
        return e.status_code, {"detail": e.detail}
    except Exception as e:
        logger.error(f"Error updating meeting {meeting_id}: {e}", exc_info=True)
        return 400, {"detail": str(e)}


@router.delete("/{meeting_id}/", response={204: None, 403: ErrorDetail, 404: ErrorDetail}, auth=JWTAuth(), summary="Delete Meeting",
               description="""
               Deletes a meeting. Only the creator may do this.

               **Warning:** This operation is irreversible and also deletes the meeting's participants, todos and discussion items.
               """
               )
def delete_meeting(request, meeting_id: int):
    try:
        meeting = services.get_visible_meeting(meeting_id, request.auth)
        services.delete_meeting(meeting, request.auth)
        return 204, None
    except ServiceError as e:
        return e.status_code, {"detail": e.detail}


@router.post("/{meeting_id}/end/", response={200: EndMeetingSchemaOut, 403: ErrorDetail, 404: ErrorDetail, 409: ErrorDetail},
             auth=JWTAuth(), summary="End Meeting",
             description="""
             Ends a meeting and emails a summary to every participant.

             **Behavior:**
             - One-time meetings move to `ended` and `ended_at` is set.
             - Recurring meetings stay `scheduled` (ready to run again); only the summary is sent.
             - The status change is committed before the email is sent. If the email cannot be sent the meeting still ends;
              `notification_sent` is false and `notification_error` explains why.

             **On Failure:**
                 - `403 Forbidden` if the caller is not the creator.
                 - `409 Conflict` if the meeting is closed, or is a one-time meeting that already ended.
             """
             )
def end_meeting(request, meeting_id: int):
    try:
        meeting = services.get_visible_meeting(meeting_id, request.auth)
        return 200, services.end_meeting(meeting, request.auth)
    except ServiceError as e:
        return e.status_code, {"detail": e.detail}


@router.post("/{meeting_id}/close/", response={200: MeetingSchemaOut, 403: ErrorDetail, 404: ErrorDetail}, auth=JWTAuth(),
             summary="Close Meeting",
             description="Moves the meeting to `closed`, hiding it from upcoming lists. Data is kept. Creator only.")
def close_meeting(request, meeting_id: int):
    try:
        meeting = services.get_visible_meeting(meeting_id, request.auth)
        return 200, services.close_meeting(meeting, request.auth)
    except ServiceError as e:
        return e.status_code, {"detail": e.detail}


@router.get("/{meeting_id}/summary/", response={200: MeetingSummaryOut, 404: ErrorDetail}, auth=JWTAuth(), summary="Get Meeting Summary",
            description="Completed discussion items (most recently completed first) and all todos of the meeting with their counts.")
def get_meeting_summary(request, meeting_id: int):
    try:
        meeting = services.get_visible_meeting(meeting_id, request.auth)
        return 200, services.meeting_summary(meeting)
    except ServiceError as e:
        return e.status_code, {"detail": e.detail}


@router.get("/{meeting_id}/participants/", response={200: List[ParticipantSchemaOut], 404: ErrorDetail}, auth=JWTAuth(),
            summary="List Participants")
def list_participants(request, meeting_id: int):
    try:
        meeting = services.get_visible_meeting(meeting_id, request.auth)
    except ServiceError as e:
        return e.status_code, {"detail": e.detail}
    return 200, MeetingParticipant.objects.filter(meeting=meeting).select_related('user__profile')


@router.post("/{meeting_id}/participants/", response={201: InviteSchemaOut, 400: ErrorDetail, 403: ErrorDetail, 404: ErrorDetail, 409: ErrorDetail},
             auth=JWTAuth(), summary="Invite Participant",
             description="""
             Invites a person to the meeting by email and sends them an invitation email.

             **Details:**
             - Only the meeting creator may invite.
             - The invitee does not need an account; when one exists for the email it is linked to the participant row.
             - The participant is saved first. If the email service is not configured, or the email fails, the participant
              is still added and `invitation_sent` is false.

             **On Failure:** `409 Conflict` with `Participant already invited` when the email is already on the meeting.
             """
             )
def invite_participant(request, meeting_id: int, data: InviteSchemaIn):
    try:
        meeting = services.get_visible_meeting(meeting_id, request.auth)
        return 201, services.invite_participant(meeting, request.auth, data.email)
    except ServiceError as e:
        return e.status_code, {"detail": e.detail}
    except Exception as e:
        logger.error(f"Error inviting participant to meeting {meeting_id}: {e}", exc_info=True)
        return 400, {"detail": "Failed to add participant"}


@router.delete("/{meeting_id}/participants/{participant_id}/", response={204: None, 400: ErrorDetail, 403: ErrorDetail, 404: ErrorDetail},
               auth=JWTAuth(), summary="Remove Participant")
def remove_participant(request, meeting_id: int, participant_id: int):
    try:
        meeting = services.get_visible_meeting(meeting_id, request.auth)
        services.remove_participant(meeting, request.auth, participant_id)
        return 204, None
    except ServiceError as e:
        return e.status_code, {"detail": e.detail}


@router.post("/{meeting_id}/respond/", response={200: ParticipantSchemaOut, 400: ErrorDetail, 404: ErrorDetail}, auth=JWTAuth(),
             summary="Respond to Invitation",
             description="Accepts or declines the caller's own invitation. The participant row is linked to the caller's account. "
                         "The organizer cannot respond (`400 Bad Request`).")
def respond_to_invitation(request, meeting_id: int, data: InvitationResponseIn):
    try:
        meeting = services.get_visible_meeting(meeting_id, request.auth)
        return 200, services.respond_to_invitation(meeting, request.auth, data.status.value)
    except ServiceError as e:
        return e.status_code, {"detail": e.detail}
