from django.test import TestCase, SimpleTestCase, override_settings

# Create your tests here.

from datetime import date, time, timedelta
from types import SimpleNamespace
from unittest import mock
import resend
from django.contrib.auth.models import User
from django.utils import timezone

from meetings.models import Meeting, MeetingParticipant
from meetings.services import create_meeting
from .dispatcher import EmailDispatcher, EmailDispatchError, EmailNotConfigured, meeting_url, redirect_url
from .emails import format_date, format_time, invitation_html, summary_html
from .tasks import send_meeting_reminders


class EmailDispatcherTestCase(SimpleTestCase):

    def test_not_configured(self):
        dispatcher = EmailDispatcher(api_key=None, sender="TimeToMeet <noreply@example.com>")
        self.assertFalse(dispatcher.is_configured)
        with self.assertRaises(EmailNotConfigured):
            dispatcher.send("a@example.com", "Hi", "<p>Hi</p>")

    @mock.patch('notifications.dispatcher.resend.Emails.send')
    def test_send_builds_resend_payload(self, mock_send):
        mock_send.return_value = {"id": "abc"}
        dispatcher = EmailDispatcher(api_key="re_key", sender="TimeToMeet <noreply@example.com>")
        self.assertEqual(dispatcher.send(["a@example.com", "", "b@example.com"], "Hi", "<p>Hi</p>"), {"id": "abc"})
        mock_send.assert_called_once_with({"from": "TimeToMeet <noreply@example.com>", "to": ["a@example.com", "b@example.com"],
                                           "subject": "Hi", "html": "<p>Hi</p>"})

    @mock.patch('notifications.dispatcher.resend.Emails.send', side_effect=Exception("invalid api key"))
    def test_provider_error_is_wrapped(self, mock_send):
        dispatcher = EmailDispatcher(api_key="re_key", sender="noreply@example.com")
        with self.assertRaises(EmailDispatchError):
            dispatcher.send("a@example.com", "Hi", "<p>Hi</p>")

    @mock.patch('notifications.dispatcher.resend.Emails.send')
    def test_empty_recipient_list(self, mock_send):
        dispatcher = EmailDispatcher(api_key="re_key", sender="noreply@example.com")
        with self.assertRaises(EmailDispatchError):
            dispatcher.send([], "Hi", "<p>Hi</p>")
        mock_send.assert_not_called()

    @mock.patch('notifications.dispatcher.resend.Emails.send')
    def test_each_dispatcher_sends_with_its_own_key(self, mock_send):
        keys_used = []
        mock_send.side_effect = lambda params: keys_used.append(resend.api_key) or {"id": "abc"}
        EmailDispatcher(api_key="re_first", sender="noreply@example.com").send("a@example.com", "Hi", "<p>Hi</p>")
        EmailDispatcher(api_key="re_second", sender="noreply@example.com").send("a@example.com", "Hi", "<p>Hi</p>")
        self.assertEqual(keys_used, ["re_first", "re_second"])

    @override_settings(SITE_URL="https://timetomeet.example/", DEV_REDIRECT_URL=None)
    def test_links(self):
        self.assertEqual(meeting_url(7), "https://timetomeet.example/?meeting=7")
        self.assertEqual(redirect_url("?page=reset-password"), "https://timetomeet.example/?page=reset-password")
        with self.settings(DEV_REDIRECT_URL="http://localhost:8501"):
            self.assertEqual(redirect_url("?page=reset-password"), "http://localhost:8501/?page=reset-password")


class EmailTemplatesTestCase(SimpleTestCase):

    def setUp(self):
        self.meeting = SimpleNamespace(title="Q3 <Planning>", scheduled_date=date(2024, 7, 4), scheduled_time=time(9, 5),
                                       location="Room & Board")

    def test_formatting(self):
        self.assertEqual(format_date(date(2024, 7, 4)), "Thursday, July 04, 2024")
        self.assertEqual(format_time(time(9, 5)), "9:05 AM")
        self.assertEqual(format_date(None), "TBD")

    def test_invitation_escapes_values(self):
        html = invitation_html(self.meeting, "Ann <script>", "https://x.example/?meeting=1")
        self.assertIn("Q3 &lt;Planning&gt;", html)
        self.assertIn("Room &amp; Board", html)
        self.assertNotIn("<script>", html)

    def test_summary_empty_states(self):
        html = summary_html(self.meeting, [], [])
        self.assertIn("No discussion items were completed in this meeting.", html)
        self.assertIn("No action items were created in this meeting.", html)

    def test_summary_lists_items(self):
        items = [SimpleNamespace(title="Budget", description="Approved")]
        todos = [SimpleNamespace(title="Send deck", assigned_email="a@example.com", due_date=date(2024, 7, 10))]
        html = summary_html(self.meeting, items, todos)
        self.assertIn("Budget", html)
        self.assertIn("Approved", html)
        self.assertIn("a@example.com", html)
        self.assertIn("Jul 10, 2024", html)


class MeetingReminderTaskTestCase(TestCase):

    def setUp(self):
        self.owner = User.objects.create_user(username='owner@example.com', email='owner@example.com', password='password123')
        tomorrow = timezone.localdate() + timedelta(days=1)
        self.due = create_meeting(self.owner, {"title": "Tomorrow", "scheduled_date": tomorrow, "scheduled_time": time(10, 0)})
        MeetingParticipant.objects.create(meeting=self.due, email='guest@example.com')
        MeetingParticipant.objects.create(meeting=self.due, email='nope@example.com', status=MeetingParticipant.Status.DECLINED)
        closed = create_meeting(self.owner, {"title": "Cancelled", "scheduled_date": tomorrow, "scheduled_time": time(12, 0)})
        Meeting.objects.filter(id=closed.id).update(status=Meeting.Status.CLOSED)
        create_meeting(self.owner, {"title": "Next week", "scheduled_date": tomorrow + timedelta(days=6), "scheduled_time": time(10, 0)})

    @override_settings(RESEND_API_KEY=None)
    def test_skipped_without_email_service(self):
        result = send_meeting_reminders.apply().get()
        self.assertEqual(result['status'], 'skipped')

    @override_settings(RESEND_API_KEY="re_test_key")
    @mock.patch('notifications.dispatcher.resend.Emails.send')
    def test_reminds_participants_of_tomorrows_meetings(self, mock_send):
        result = send_meeting_reminders.apply().get()
        self.assertEqual(result, {"status": "completed", "sent": 1, "failed": 0})
        payload = mock_send.call_args[0][0]
        self.assertEqual(payload['to'], ['guest@example.com', 'owner@example.com'])
        self.assertEqual(payload['subject'], "Reminder: Tomorrow is tomorrow")

    @override_settings(RESEND_API_KEY="re_test_key")
    @mock.patch('notifications.dispatcher.resend.Emails.send')
    def test_failed_reminder_does_not_stop_the_others(self, mock_send):
        tomorrow = timezone.localdate() + timedelta(days=1)
        create_meeting(self.owner, {"title": "Standup", "scheduled_date": tomorrow, "scheduled_time": time(9, 0)})
        mock_send.side_effect = [ConnectionError("provider unreachable"), {"id": "abc"}]

        result = send_meeting_reminders.apply().get()
        self.assertEqual(result, {"status": "completed", "sent": 1, "failed": 1})
        self.assertEqual(mock_send.call_count, 2)
