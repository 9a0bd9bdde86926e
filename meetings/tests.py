from django.test import TestCase, Client, override_settings

# Create your tests here.

import json
from datetime import date, time, timedelta
from unittest import mock
from django.contrib.auth.models import User
from django.utils import timezone
from ninja_jwt.tokens import RefreshToken

from discussions.models import DiscussionItem
from notifications.dispatcher import EmailDispatcher, EmailDispatchError
from todos.models import Todo
from . import services
from .models import Meeting, MeetingParticipant

def get_tokens_for_user(user):
    refresh = RefreshToken.for_user(user)
    return {'access': str(refresh.access_token)}

def make_meeting(user, **kwargs):
    fields = {"title": "Weekly Sync", "scheduled_date": timezone.localdate() + timedelta(days=3), "scheduled_time": time(10, 0)}
    fields.update(kwargs)
    return services.create_meeting(user, fields)


class BasicMeetingAPITestCase(TestCase):

    def setUp(self):
        self.client = Client()
        self.test_user = User.objects.create_user(username='owner@example.com', email='owner@example.com', password='password123')
        self.tokens = get_tokens_for_user(self.test_user)
        self.auth_headers = {'HTTP_AUTHORIZATION': f'Bearer {self.tokens["access"]}'}
        self.other_user = User.objects.create_user(username='other@example.com', email='other@example.com', password='password123')
        self.other_headers = {'HTTP_AUTHORIZATION': f'Bearer {get_tokens_for_user(self.other_user)["access"]}'}
        self.base_url = '/api/meetings/'
        self.existing_meeting = make_meeting(self.test_user, title="Initial Meeting")

    def test_create_meeting_success(self):
        data = {"title": "New Test Meeting", "scheduled_date": "2030-01-15", "scheduled_time": "14:30", "duration_minutes": "45"}
        response = self.client.post(self.base_url, data=json.dumps(data), content_type='application/json', **self.auth_headers)
        self.assertEqual(response.status_code, 201)
        body = response.json()
        self.assertEqual(body['title'], data['title'])
        self.assertEqual(body['status'], 'scheduled')
        self.assertEqual(body['duration_minutes'], 45)
        meeting = Meeting.objects.get(id=body['id'])
        organizer = meeting.participants.get()
        self.assertEqual(organizer.role, MeetingParticipant.Role.ORGANIZER)
        self.assertEqual(organizer.user, self.test_user)

    def test_create_meeting_drops_frequency_when_not_recurring(self):
        data = {"title": "One-off", "scheduled_date": "2030-01-15", "scheduled_time": "09:00", "frequency": "weekly"}
        response = self.client.post(self.base_url, data=json.dumps(data), content_type='application/json', **self.auth_headers)
        self.assertEqual(response.status_code, 201)
        self.assertIsNone(response.json()['frequency'])

    def test_create_meeting_invalid_title_fails(self):
        data = {"title": "  ", "scheduled_date": "2030-01-15", "scheduled_time": "09:00"}
        response = self.client.post(self.base_url, data=json.dumps(data), content_type='application/json', **self.auth_headers)
        self.assertIn(response.status_code, [400, 422])
        self.assertIn('detail', response.json())

    def test_list_meetings_success(self):
        response = self.client.get(self.base_url, **self.auth_headers)
        self.assertEqual(response.status_code, 200)
        self.assertIsInstance(response.json(), list)
        titles = [m['title'] for m in response.json()]
        self.assertIn(self.existing_meeting.title, titles)

    def test_list_meetings_hides_meetings_of_others(self):
        response = self.client.get(self.base_url, **self.other_headers)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), [])

    def test_invited_email_sees_meeting(self):
        MeetingParticipant.objects.create(meeting=self.existing_meeting, email='other@example.com')
        response = self.client.get(f"{self.base_url}{self.existing_meeting.id}/", **self.other_headers)
        self.assertEqual(response.status_code, 200)

    def test_get_meeting_success(self):
        url = f"{self.base_url}{self.existing_meeting.id}/"
        response = self.client.get(url, **self.auth_headers)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['id'], self.existing_meeting.id)
        self.assertEqual(response.json()['title'], self.existing_meeting.title)

    def test_get_meeting_not_visible_returns_404(self):
        response = self.client.get(f"{self.base_url}{self.existing_meeting.id}/", **self.other_headers)
        self.assertEqual(response.status_code, 404)

    def test_update_meeting_success(self):
        url = f"{self.base_url}{self.existing_meeting.id}/"
        update_data = {"title": "Updated Meeting Title", "is_recurring": True, "frequency": "monthly"}
        response = self.client.put(url, data=json.dumps(update_data), content_type='application/json', **self.auth_headers)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['title'], update_data['title'])
        self.existing_meeting.refresh_from_db()
        self.assertEqual(self.existing_meeting.title, update_data['title'])
        self.assertEqual(self.existing_meeting.frequency, Meeting.Frequency.MONTHLY)

    def test_update_meeting_by_participant_forbidden(self):
        MeetingParticipant.objects.create(meeting=self.existing_meeting, user=self.other_user, email='other@example.com')
        url = f"{self.base_url}{self.existing_meeting.id}/"
        response = self.client.put(url, data=json.dumps({"title": "Hijacked"}), content_type='application/json', **self.other_headers)
        self.assertEqual(response.status_code, 403)
        self.existing_meeting.refresh_from_db()
        self.assertEqual(self.existing_meeting.title, "Initial Meeting")

    def test_delete_meeting_success(self):
        url = f"{self.base_url}{self.existing_meeting.id}/"
        response = self.client.delete(url, **self.auth_headers)
        self.assertEqual(response.status_code, 204)
        self.assertFalse(Meeting.objects.filter(id=self.existing_meeting.id).exists())

    def test_unauthenticated_access_fails(self):
        response = self.client.get(self.base_url)
        self.assertEqual(response.status_code, 401)

    def test_upcoming_excludes_closed_and_past(self):
        make_meeting(self.test_user, title="Past", scheduled_date=timezone.localdate() - timedelta(days=1))
        closed = make_meeting(self.test_user, title="Closed")
        Meeting.objects.filter(id=closed.id).update(status=Meeting.Status.CLOSED)
        make_meeting(self.test_user, title="Sooner", scheduled_date=timezone.localdate())
        response = self.client.get(f"{self.base_url}upcoming/", **self.auth_headers)
        self.assertEqual(response.status_code, 200)
        self.assertEqual([m['title'] for m in response.json()], ["Sooner", "Initial Meeting"])


@override_settings(RESEND_API_KEY=None)
class MeetingLifecycleTestCase(TestCase):

    def setUp(self):
        self.client = Client()
        self.owner = User.objects.create_user(username='owner@example.com', email='owner@example.com', password='password123')
        self.auth_headers = {'HTTP_AUTHORIZATION': f'Bearer {get_tokens_for_user(self.owner)["access"]}'}
        self.guest = User.objects.create_user(username='guest@example.com', email='guest@example.com', password='password123')
        self.guest_headers = {'HTTP_AUTHORIZATION': f'Bearer {get_tokens_for_user(self.guest)["access"]}'}
        self.meeting = make_meeting(self.owner, title="Planning")
        MeetingParticipant.objects.create(meeting=self.meeting, user=self.guest, email='guest@example.com',
                                          status=MeetingParticipant.Status.ACCEPTED)
        self.base_url = f'/api/meetings/{self.meeting.id}/'

    def test_end_one_time_meeting(self):
        response = self.client.post(f"{self.base_url}end/", **self.auth_headers)
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body['meeting']['status'], 'ended')
        self.assertIsNotNone(body['meeting']['ended_at'])
        self.assertFalse(body['notification_sent'])
        self.assertEqual(body['notification_error'], "Email service not configured")
        self.meeting.refresh_from_db()
        self.assertEqual(self.meeting.status, Meeting.Status.ENDED)
        self.assertIsNotNone(self.meeting.ended_at)

    def test_end_recurring_meeting_stays_scheduled(self):
        Meeting.objects.filter(id=self.meeting.id).update(is_recurring=True, frequency=Meeting.Frequency.WEEKLY)
        response = self.client.post(f"{self.base_url}end/", **self.auth_headers)
        self.assertEqual(response.status_code, 200)
        self.meeting.refresh_from_db()
        self.assertEqual(self.meeting.status, Meeting.Status.SCHEDULED)
        self.assertIsNone(self.meeting.ended_at)

    def test_end_recurring_meeting_can_run_again(self):
        Meeting.objects.filter(id=self.meeting.id).update(is_recurring=True, frequency=Meeting.Frequency.WEEKLY)
        self.assertEqual(self.client.post(f"{self.base_url}end/", **self.auth_headers).status_code, 200)
        self.assertEqual(self.client.post(f"{self.base_url}end/", **self.auth_headers).status_code, 200)

    def test_end_meeting_by_non_creator_forbidden(self):
        response = self.client.post(f"{self.base_url}end/", **self.guest_headers)
        self.assertEqual(response.status_code, 403)
        self.meeting.refresh_from_db()
        self.assertEqual(self.meeting.status, Meeting.Status.SCHEDULED)
        self.assertIsNone(self.meeting.ended_at)

    def test_end_already_ended_meeting_conflicts(self):
        self.client.post(f"{self.base_url}end/", **self.auth_headers)
        response = self.client.post(f"{self.base_url}end/", **self.auth_headers)
        self.assertEqual(response.status_code, 409)

    def test_end_closed_meeting_conflicts(self):
        Meeting.objects.filter(id=self.meeting.id).update(status=Meeting.Status.CLOSED)
        response = self.client.post(f"{self.base_url}end/", **self.auth_headers)
        self.assertEqual(response.status_code, 409)

    def test_close_meeting(self):
        response = self.client.post(f"{self.base_url}close/", **self.auth_headers)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['status'], 'closed')
        self.assertIsNone(response.json()['ended_at'])
        # Closing twice is a no-op.
        response = self.client.post(f"{self.base_url}close/", **self.auth_headers)
        self.assertEqual(response.status_code, 200)

    def test_close_meeting_by_non_creator_forbidden(self):
        response = self.client.post(f"{self.base_url}close/", **self.guest_headers)
        self.assertEqual(response.status_code, 403)
        self.meeting.refresh_from_db()
        self.assertEqual(self.meeting.status, Meeting.Status.SCHEDULED)

    def test_end_meeting_state_kept_when_email_fails(self):
        dispatcher = mock.Mock(spec=EmailDispatcher)
        dispatcher.send.side_effect = EmailDispatchError("provider down")
        result = services.end_meeting(self.meeting, self.owner, dispatcher=dispatcher)
        self.assertFalse(result['notification_sent'])
        self.assertIn("provider down", result['notification_error'])
        self.meeting.refresh_from_db()
        self.assertEqual(self.meeting.status, Meeting.Status.ENDED)

    def test_end_meeting_sends_summary_to_all_participants(self):
        DiscussionItem.objects.create(meeting=self.meeting, title="Budget", status=DiscussionItem.Status.DONE, created_by=self.owner)
        DiscussionItem.objects.create(meeting=self.meeting, title="Hiring", created_by=self.owner)
        Todo.objects.create(meeting=self.meeting, title="Send deck", created_by=self.owner, assigned_email='guest@example.com')
        dispatcher = mock.Mock(spec=EmailDispatcher)
        result = services.end_meeting(self.meeting, self.owner, dispatcher=dispatcher)
        self.assertTrue(result['notification_sent'])
        recipients, subject, html = dispatcher.send.call_args[0]
        self.assertEqual(recipients, ['guest@example.com', 'owner@example.com'])
        self.assertEqual(subject, "Meeting Summary: Planning")
        self.assertIn("Budget", html)
        self.assertNotIn("Hiring", html)
        self.assertIn("Send deck", html)

    def test_summary_endpoint(self):
        DiscussionItem.objects.create(meeting=self.meeting, title="Budget", status=DiscussionItem.Status.DONE, created_by=self.owner)
        Todo.objects.create(meeting=self.meeting, title="Send deck", created_by=self.owner)
        Todo.objects.create(meeting=self.meeting, title="Book room", created_by=self.owner, status=Todo.Status.DONE)
        response = self.client.get(f"{self.base_url}summary/", **self.guest_headers)
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual([i['title'] for i in body['completed_discussion_items']], ["Budget"])
        self.assertEqual(body['pending_todo_count'], 1)
        self.assertEqual(body['completed_todo_count'], 1)


@override_settings(RESEND_API_KEY=None)
class ParticipantAPITestCase(TestCase):

    def setUp(self):
        self.client = Client()
        self.owner = User.objects.create_user(username='owner@example.com', email='owner@example.com', password='password123')
        self.auth_headers = {'HTTP_AUTHORIZATION': f'Bearer {get_tokens_for_user(self.owner)["access"]}'}
        self.meeting = make_meeting(self.owner)
        self.url = f'/api/meetings/{self.meeting.id}/participants/'

    def invite(self, email, headers=None):
        return self.client.post(self.url, data=json.dumps({"email": email}), content_type='application/json',
                                **(headers or self.auth_headers))

    def test_invite_without_email_service_keeps_participant(self):
        response = self.invite("new@example.com")
        self.assertEqual(response.status_code, 201)
        body = response.json()
        self.assertFalse(body['invitation_sent'])
        self.assertEqual(body['message'], "Participant added (email service not configured)")
        self.assertTrue(MeetingParticipant.objects.filter(meeting=self.meeting, email="new@example.com").exists())

    def test_invite_links_existing_account(self):
        invitee = User.objects.create_user(username='known@example.com', email='known@example.com', password='password123')
        response = self.invite("Known@Example.com")
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()['participant']['user_id'], invitee.id)
        self.assertEqual(response.json()['participant']['email'], 'known@example.com')

    def test_duplicate_invite_conflicts(self):
        self.assertEqual(self.invite("dup@example.com").status_code, 201)
        response = self.invite("dup@example.com")
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json()['detail'], "Participant already invited")
        self.assertEqual(MeetingParticipant.objects.filter(meeting=self.meeting, email="dup@example.com").count(), 1)

    @override_settings(RESEND_API_KEY="re_test_key")
    @mock.patch('notifications.dispatcher.resend.Emails.send')
    def test_invite_sends_email_when_configured(self, mock_send):
        mock_send.return_value = {"id": "email-1"}
        response = self.invite("mailme@example.com")
        self.assertEqual(response.status_code, 201)
        self.assertTrue(response.json()['invitation_sent'])
        payload = mock_send.call_args[0][0]
        self.assertEqual(payload['to'], ["mailme@example.com"])
        self.assertIn(f"?meeting={self.meeting.id}", payload['html'])

    @override_settings(RESEND_API_KEY="re_test_key")
    @mock.patch('notifications.dispatcher.resend.Emails.send', side_effect=Exception("rate limited"))
    def test_invite_email_failure_keeps_participant(self, mock_send):
        response = self.invite("unlucky@example.com")
        self.assertEqual(response.status_code, 201)
        self.assertFalse(response.json()['invitation_sent'])
        self.assertTrue(MeetingParticipant.objects.filter(email="unlucky@example.com").exists())

    def test_invite_by_non_creator_forbidden(self):
        guest = User.objects.create_user(username='guest@example.com', email='guest@example.com', password='password123')
        MeetingParticipant.objects.create(meeting=self.meeting, user=guest, email='guest@example.com')
        headers = {'HTTP_AUTHORIZATION': f'Bearer {get_tokens_for_user(guest)["access"]}'}
        self.assertEqual(self.invite("x@example.com", headers).status_code, 403)

    def test_remove_participant(self):
        participant = MeetingParticipant.objects.create(meeting=self.meeting, email='leaving@example.com')
        response = self.client.delete(f"{self.url}{participant.id}/", **self.auth_headers)
        self.assertEqual(response.status_code, 204)
        self.assertFalse(MeetingParticipant.objects.filter(id=participant.id).exists())

    def test_organizer_cannot_be_removed(self):
        organizer = self.meeting.participants.get(role=MeetingParticipant.Role.ORGANIZER)
        response = self.client.delete(f"{self.url}{organizer.id}/", **self.auth_headers)
        self.assertEqual(response.status_code, 400)

    def test_invitee_accepts_invitation(self):
        MeetingParticipant.objects.create(meeting=self.meeting, email='late@example.com')
        invitee = User.objects.create_user(username='late@example.com', email='late@example.com', password='password123')
        headers = {'HTTP_AUTHORIZATION': f'Bearer {get_tokens_for_user(invitee)["access"]}'}
        response = self.client.post(f'/api/meetings/{self.meeting.id}/respond/', data=json.dumps({"status": "accepted"}),
                                    content_type='application/json', **headers)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['status'], 'accepted')
        self.assertEqual(response.json()['user_id'], invitee.id)

    def test_organizer_cannot_decline_own_meeting(self):
        response = self.client.post(f'/api/meetings/{self.meeting.id}/respond/', data=json.dumps({"status": "declined"}),
                                    content_type='application/json', **self.auth_headers)
        self.assertEqual(response.status_code, 400)
        organizer = MeetingParticipant.objects.get(meeting=self.meeting, role=MeetingParticipant.Role.ORGANIZER)
        self.assertEqual(organizer.status, MeetingParticipant.Status.ACCEPTED)

    def test_list_participants(self):
        MeetingParticipant.objects.create(meeting=self.meeting, email='listed@example.com')
        response = self.client.get(self.url, **self.auth_headers)
        self.assertEqual(response.status_code, 200)
        self.assertEqual({p['email'] for p in response.json()}, {'owner@example.com', 'listed@example.com'})
