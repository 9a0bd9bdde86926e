from django.conf import settings
from django.db import models
from django.utils.translation import gettext_lazy as _
from meetings.models import Meeting

# Create your models here.

class DiscussionItem(models.Model):
    class Status(models.TextChoices):
        PENDING = 'pending', _('Pending')
        DONE = 'done', _('Done')

    meeting = models.ForeignKey(Meeting, on_delete=models.CASCADE, related_name='discussion_items')
    title = models.CharField(max_length=255, blank=False, null=False)
    description = models.TextField(blank=True, default="")
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING, db_index=True)
    order_index = models.IntegerField(default=0)
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='discussion_items_created')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['order_index', 'created_at']
        verbose_name = "Discussion Item"
        verbose_name_plural = "Discussion Items"

    def __str__(self):
        return f"{self.title} ({self.get_status_display()})"
