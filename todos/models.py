from django.conf import settings
from django.db import models
from django.utils.translation import gettext_lazy as _
from meetings.models import Meeting

# Create your models here.

class Todo(models.Model):
    class Status(models.TextChoices):
        PENDING = 'pending', _('Pending')
        DONE = 'done', _('Done')

    meeting = models.ForeignKey(Meeting, on_delete=models.CASCADE, related_name='todos', blank=True, null=True)
    title = models.CharField(max_length=255, blank=False, null=False)
    description = models.TextField(blank=True, default="")
    assigned_to = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, blank=True, null=True,
                                    related_name='todos_assigned')
    assigned_email = models.EmailField(max_length=255, blank=True, null=True)
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='todos_created')
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING, db_index=True)
    due_date = models.DateField(blank=True, null=True, db_index=True)
    order_index = models.IntegerField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        verbose_name = "Todo"
        verbose_name_plural = "Todos"

    def __str__(self):
        return f"{self.title} ({self.get_status_display()})"
