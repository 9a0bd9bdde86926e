import logging
from typing import Any, Dict, Optional
from django.db import IntegrityError, transaction
from django.db.models import Q
from django.utils import timezone

from accounts.services import display_name, find_user_by_email, normalize_email
from discussions.models import DiscussionItem
from notifications.dispatcher import EmailDispatcher, EmailDispatchError, EmailNotConfigured, get_dispatcher, meeting_url
from notifications.emails import invitation_html, summary_html
from timetomeet.exceptions import Conflict, InvalidRequest, NotFound, PermissionDenied
from todos.models import Todo
from .models import Meeting, MeetingParticipant

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ('title', 'description', 'scheduled_date', 'scheduled_time', 'duration_minutes', 'location',
                   'is_recurring', 'frequency')


def visible_meetings(user):
    """Meetings the user created or was invited to, by account or by email."""
    condition = Q(created_by=user) | Q(participants__user=user)
    if user.email:
        condition |= Q(participants__email__iexact=user.email)
    return Meeting.objects.filter(condition).distinct()


def get_visible_meeting(meeting_id: int, user) -> Meeting:
    meeting = visible_meetings(user).filter(id=meeting_id).first()
    if meeting is None:
        raise NotFound(f"Meeting with id {meeting_id} not found")
    return meeting


def is_creator(meeting: Meeting, user) -> bool:
    return meeting.created_by_id == user.pk


def require_creator(meeting: Meeting, user, action: str) -> None:
    if not is_creator(meeting, user):
        logger.warning(f"User {user.pk} attempted to {action} meeting {meeting.id} without being its creator.")
        raise PermissionDenied(f"Only the meeting creator can {action} this meeting")


def create_meeting(user, data: Dict[str, Any]) -> Meeting:
    fields = {k: v for k, v in data.items() if k in EDITABLE_FIELDS and v is not None}
    if not fields.get('is_recurring'):
        fields['frequency'] = None

    with transaction.atomic():
        meeting = Meeting.objects.create(created_by=user, status=Meeting.Status.SCHEDULED, **fields)
        MeetingParticipant.objects.create(meeting=meeting, user=user, email=normalize_email(user.email or user.username),
                                          role=MeetingParticipant.Role.ORGANIZER, status=MeetingParticipant.Status.ACCEPTED)
    logger.info(f"User {user.pk} created meeting {meeting.id} ('{meeting.title}').")
    return meeting


def update_meeting(meeting: Meeting, user, changes: Dict[str, Any]) -> Meeting:
    require_creator(meeting, user, "edit")
    for field, value in changes.items():
        if field in EDITABLE_FIELDS and value is not None:
            setattr(meeting, field, value)
    if not meeting.is_recurring:
        meeting.frequency = None
    meeting.save()
    logger.info(f"Meeting {meeting.id} settings updated by user {user.pk}.")
    return meeting


def delete_meeting(meeting: Meeting, user) -> None:
    require_creator(meeting, user, "delete")
    meeting_id = meeting.id
    meeting.delete()
    logger.info(f"Meeting {meeting_id} deleted by user {user.pk}.")


def upcoming_meetings(user, limit: int = 5):
    today = timezone.localdate()
    return (visible_meetings(user)
            .filter(scheduled_date__gte=today)
            .exclude(status=Meeting.Status.CLOSED)
            .order_by('scheduled_date', 'scheduled_time')[:limit])


def meeting_summary(meeting: Meeting) -> Dict[str, Any]:
    completed_items = DiscussionItem.objects.filter(meeting=meeting, status=DiscussionItem.Status.DONE).order_by('-updated_at')
    todos = list(Todo.objects.filter(meeting=meeting).order_by('-created_at'))
    return {
        "meeting_id": meeting.id,
        "completed_discussion_items": list(completed_items),
        "todos": todos,
        "pending_todo_count": sum(1 for t in todos if t.status == Todo.Status.PENDING),
        "completed_todo_count": sum(1 for t in todos if t.status == Todo.Status.DONE),
    }


def participant_emails(meeting: Meeting):
    emails = MeetingParticipant.objects.filter(meeting=meeting).values_list('email', flat=True)
    return sorted({e for e in emails if e})


def send_meeting_summary(meeting: Meeting, dispatcher: Optional[EmailDispatcher] = None) -> Optional[str]:
    """Emails the meeting summary to every participant. Returns an error message, or None when the email went out."""
    dispatcher = dispatcher or get_dispatcher()
    recipients = participant_emails(meeting)
    if not recipients:
        logger.info(f"No participants found for meeting {meeting.id}, skipping summary email.")
        return "No participants found"

    completed_items = DiscussionItem.objects.filter(meeting=meeting, status=DiscussionItem.Status.DONE).order_by('order_index')
    todos = Todo.objects.filter(meeting=meeting).order_by('due_date', 'created_at')
    html = summary_html(meeting, list(completed_items), list(todos))
    try:
        dispatcher.send(recipients, f"Meeting Summary: {meeting.title}", html)
    except EmailNotConfigured as e:
        logger.info(f"Email service not configured, skipping summary email for meeting {meeting.id}.")
        return str(e)
    except EmailDispatchError as e:
        logger.error(f"Summary email for meeting {meeting.id} failed: {e}")
        return f"Failed to send email summary: {e}"
    logger.info(f"Summary email for meeting {meeting.id} sent to {len(recipients)} participant(s).")
    return None


def end_meeting(meeting: Meeting, user, dispatcher: Optional[EmailDispatcher] = None) -> Dict[str, Any]:
    """
    Ends a meeting and emails its summary to the participants.

    One-time meetings move to `ended` and get `ended_at`; recurring meetings stay
    `scheduled` so they can be run again. The status change is saved before the
    summary is sent, and a failed send does not undo it.
    """
    require_creator(meeting, user, "end")
    if meeting.status == Meeting.Status.CLOSED:
        raise Conflict(f"Meeting {meeting.id} is closed and cannot be ended.")
    if meeting.status == Meeting.Status.ENDED and not meeting.is_recurring:
        raise Conflict(f"Meeting {meeting.id} has already ended.")

    if meeting.is_recurring:
        logger.info(f"Recurring meeting {meeting.id} run finished; it stays scheduled.")
    else:
        meeting.status = Meeting.Status.ENDED
        meeting.ended_at = timezone.now()
        meeting.save(update_fields=['status', 'ended_at', 'updated_at'])
        logger.info(f"Meeting {meeting.id} ended by user {user.pk}.")

    error = send_meeting_summary(meeting, dispatcher)
    return {"meeting": meeting, "notification_sent": error is None, "notification_error": error}


def close_meeting(meeting: Meeting, user) -> Meeting:
    require_creator(meeting, user, "close")
    if meeting.status != Meeting.Status.CLOSED:
        meeting.status = Meeting.Status.CLOSED
        meeting.save(update_fields=['status', 'updated_at'])
        logger.info(f"Meeting {meeting.id} closed by user {user.pk}.")
    return meeting


def invite_participant(meeting: Meeting, user, email: str, dispatcher: Optional[EmailDispatcher] = None) -> Dict[str, Any]:
    """
    Adds `email` to the meeting and sends an invitation email.

    The participant row is kept even when the email cannot be sent; in that case
    `invitation_sent` is false and `message` says why.
    """
    require_creator(meeting, user, "invite participants to")
    email = normalize_email(email)
    if not email:
        raise InvalidRequest("Email is required")
    if MeetingParticipant.objects.filter(meeting=meeting, email__iexact=email).exists():
        raise Conflict("Participant already invited")

    invitee = find_user_by_email(email)
    try:
        with transaction.atomic():
            participant = MeetingParticipant.objects.create(meeting=meeting, user=invitee, email=email,
                                                            role=MeetingParticipant.Role.PARTICIPANT,
                                                            status=MeetingParticipant.Status.PENDING)
    except IntegrityError as e:
        raise Conflict("Participant already invited") from e
    logger.info(f"Participant {participant.id} invited to meeting {meeting.id}.")

    dispatcher = dispatcher or get_dispatcher()
    if not dispatcher.is_configured:
        logger.info("Email service not configured, skipping invitation email.")
        return {"participant": participant, "invitation_sent": False,
                "message": "Participant added (email service not configured)"}

    try:
        dispatcher.send(email, f"Meeting Invitation: {meeting.title}",
                        invitation_html(meeting, display_name(user), meeting_url(meeting.id)))
    except EmailDispatchError as e:
        logger.warning(f"Invitation email for participant {participant.id} failed: {e}")
        return {"participant": participant, "invitation_sent": False,
                "message": "Participant added but failed to send invitation email"}
    return {"participant": participant, "invitation_sent": True, "message": "Participant invited"}


def remove_participant(meeting: Meeting, user, participant_id: int) -> None:
    require_creator(meeting, user, "remove participants from")
    participant = MeetingParticipant.objects.filter(meeting=meeting, id=participant_id).first()
    if participant is None:
        raise NotFound(f"Participant with id {participant_id} not found")
    if participant.role == MeetingParticipant.Role.ORGANIZER:
        raise InvalidRequest("The meeting organizer cannot be removed")
    participant.delete()
    logger.info(f"Participant {participant_id} removed from meeting {meeting.id}.")


def respond_to_invitation(meeting: Meeting, user, status: str) -> MeetingParticipant:
    if status not in (MeetingParticipant.Status.ACCEPTED, MeetingParticipant.Status.DECLINED):
        raise InvalidRequest("Response must be 'accepted' or 'declined'")
    condition = Q(user=user)
    if user.email:
        condition |= Q(email__iexact=user.email)
    participant = MeetingParticipant.objects.filter(condition, meeting=meeting).first()
    if participant is None:
        raise NotFound("You are not invited to this meeting")
    if participant.role == MeetingParticipant.Role.ORGANIZER:
        raise InvalidRequest("The meeting organizer cannot respond to their own meeting")

    participant.status = status
    participant.user = user
    participant.save(update_fields=['status', 'user'])
    logger.info(f"Participant {participant.id} {status} the invitation to meeting {meeting.id}.")
    return participant
