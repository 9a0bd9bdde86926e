from django.conf import settings
from django.db import models
from django.utils.translation import gettext_lazy as _

# Create your models here.

class Meeting(models.Model):
    class Status(models.TextChoices):
        SCHEDULED = 'scheduled', _('Scheduled')
        ENDED = 'ended', _('Ended')
        CLOSED = 'closed', _('Closed')

    class Frequency(models.TextChoices):
        WEEKLY = 'weekly', _('Weekly')
        BIWEEKLY = 'biweekly', _('Every two weeks')
        MONTHLY = 'monthly', _('Monthly')

    title = models.CharField(max_length=255, blank=False, null=False,)
    description = models.TextField(blank=True, default="")
    scheduled_date = models.DateField(db_index=True)
    scheduled_time = models.TimeField()
    duration_minutes = models.PositiveIntegerField(default=60)
    location = models.CharField(max_length=255, blank=True, default="")
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='meetings_created')
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.SCHEDULED, db_index=True)
    is_recurring = models.BooleanField(default=False)
    frequency = models.CharField(max_length=20, choices=Frequency.choices, blank=True, null=True)
    ended_at = models.DateTimeField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True,)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['scheduled_date', 'scheduled_time', '-created_at']
        verbose_name = "Meeting"
        verbose_name_plural = "Meetings"

    def __str__(self):
        date_str = self.scheduled_date.strftime('%Y-%m-%d') if self.scheduled_date else 'N/A'
        return f"{self.title} ({date_str})"


class MeetingParticipant(models.Model):
    class Role(models.TextChoices):
        ORGANIZER = 'organizer', _('Organizer')
        PARTICIPANT = 'participant', _('Participant')

    class Status(models.TextChoices):
        PENDING = 'pending', _('Pending')
        ACCEPTED = 'accepted', _('Accepted')
        DECLINED = 'declined', _('Declined')

    meeting = models.ForeignKey(Meeting, on_delete=models.CASCADE, related_name='participants')
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, blank=True, null=True,
                             related_name='meeting_participations')
    email = models.EmailField(max_length=255)
    role = models.CharField(max_length=20, choices=Role.choices, default=Role.PARTICIPANT)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['created_at']
        constraints = [
            models.UniqueConstraint(fields=['meeting', 'email'], name='unique_participant_email_per_meeting'),
        ]
        verbose_name = "Meeting Participant"
        verbose_name_plural = "Meeting Participants"

    def __str__(self):
        return f"{self.email} ({self.get_role_display()}, {self.get_status_display()})"
