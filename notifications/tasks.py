import logging
from datetime import timedelta
from celery import shared_task
from django.utils import timezone
from meetings.models import Meeting, MeetingParticipant
from .dispatcher import EmailDispatchError, get_dispatcher, meeting_url
from .emails import reminder_html

logger = logging.getLogger(__name__)


@shared_task(bind=True, name='notifications.tasks.send_meeting_reminders')
def send_meeting_reminders(self):
    """
    Emails every participant of each meeting scheduled for tomorrow that is not closed.
    Runs daily from celery beat. A failed email for one meeting does not stop the others.
    """
    task_id = self.request.id
    dispatcher = get_dispatcher()
    if not dispatcher.is_configured:
        logger.info(f"Celery Task [{task_id}]: Email service not configured, skipping meeting reminders.")
        return {"status": "skipped", "reason": "Email service not configured"}

    tomorrow = timezone.localdate() + timedelta(days=1)
    meetings = Meeting.objects.filter(scheduled_date=tomorrow).exclude(status=Meeting.Status.CLOSED)
    sent, failed = 0, 0
    for meeting in meetings:
        recipients = sorted(set(MeetingParticipant.objects.filter(meeting=meeting)
                                .exclude(status=MeetingParticipant.Status.DECLINED)
                                .values_list('email', flat=True)))
        if not recipients:
            logger.debug(f"Celery Task [{task_id}]: Meeting {meeting.id} has no participants to remind.")
            continue
        try:
            dispatcher.send(recipients, f"Reminder: {meeting.title} is tomorrow", reminder_html(meeting, meeting_url(meeting.id)))
            sent += 1
        except EmailDispatchError as e:
            logger.error(f"Celery Task [{task_id}]: Reminder for meeting {meeting.id} failed: {e}")
            failed += 1

    logger.info(f"Celery Task [{task_id}]: Meeting reminders for {tomorrow} done. Sent: {sent}, failed: {failed}.")
    return {"status": "completed", "sent": sent, "failed": failed}
