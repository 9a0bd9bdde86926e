import os
from celery import Celery
from celery.schedules import crontab

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'timetomeet.settings')

app = Celery('timetomeet')
app.config_from_object('django.conf:settings', namespace='CELERY')
app.autodiscover_tasks()

app.conf.beat_schedule = {
    'send-meeting-reminders-daily': {
        'task': 'notifications.tasks.send_meeting_reminders',
        'schedule': crontab(hour=8, minute=0),
    },
}
