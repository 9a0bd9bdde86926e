from django.test import TestCase, Client, override_settings

# Create your tests here.

import json
from datetime import date, time
from unittest import mock
from django.contrib.auth.models import User
from django.db import DatabaseError
from django.db.models.query import QuerySet
from ninja_jwt.tokens import RefreshToken

from meetings.models import MeetingParticipant
from meetings.services import create_meeting
from .models import Todo

def get_tokens_for_user(user):
    refresh = RefreshToken.for_user(user)
    return {'access': str(refresh.access_token)}


class TodoAPITestCase(TestCase):

    def setUp(self):
        self.client = Client()
        self.owner = User.objects.create_user(username='owner@example.com', email='owner@example.com', password='password123')
        self.auth_headers = {'HTTP_AUTHORIZATION': f'Bearer {get_tokens_for_user(self.owner)["access"]}'}
        self.member = User.objects.create_user(username='member@example.com', email='member@example.com', password='password123')
        self.member_headers = {'HTTP_AUTHORIZATION': f'Bearer {get_tokens_for_user(self.member)["access"]}'}
        self.stranger = User.objects.create_user(username='stranger@example.com', email='stranger@example.com', password='password123')
        self.stranger_headers = {'HTTP_AUTHORIZATION': f'Bearer {get_tokens_for_user(self.stranger)["access"]}'}
        self.meeting = create_meeting(self.owner, {"title": "Sprint Review", "scheduled_date": date(2030, 3, 1),
                                                   "scheduled_time": time(15, 0)})
        MeetingParticipant.objects.create(meeting=self.meeting, user=self.member, email='member@example.com')
        self.base_url = '/api/todos/'
        self.meeting_url = f'{self.base_url}meeting/{self.meeting.id}/'

    def post_json(self, url, data, headers):
        return self.client.post(url, data=json.dumps(data), content_type='application/json', **headers)

    def test_member_creates_meeting_todo_assigned_by_email(self):
        response = self.post_json(self.meeting_url, {"title": "Write notes", "assigned_email": "Owner@Example.com",
                                                     "due_date": "2030-03-05"}, self.member_headers)
        self.assertEqual(response.status_code, 201)
        body = response.json()
        self.assertEqual(body['status'], 'pending')
        self.assertEqual(body['assigned_email'], 'owner@example.com')
        self.assertEqual(body['assigned_to_id'], self.owner.id)
        self.assertEqual(body['meeting_id'], self.meeting.id)
        self.assertEqual(body['meeting_title'], "Sprint Review")

    def test_stranger_cannot_add_todo(self):
        response = self.post_json(self.meeting_url, {"title": "Sneaky"}, self.stranger_headers)
        self.assertEqual(response.status_code, 404)
        self.assertFalse(Todo.objects.exists())

    def test_create_personal_task_assigned_to_self(self):
        response = self.post_json(self.base_url, {"title": "Renew passport"}, self.member_headers)
        self.assertEqual(response.status_code, 201)
        todo = Todo.objects.get(id=response.json()['id'])
        self.assertIsNone(todo.meeting)
        self.assertEqual(todo.assigned_to, self.member)
        self.assertEqual(todo.created_by, self.member)

    def test_my_tasks_scopes(self):
        Todo.objects.create(meeting=self.meeting, title="Mine to do", created_by=self.owner, assigned_to=self.member)
        Todo.objects.create(meeting=self.meeting, title="I asked for it", created_by=self.member, assigned_to=self.owner)
        Todo.objects.create(meeting=self.meeting, title="Unrelated", created_by=self.owner, assigned_to=self.owner)

        response = self.client.get(f"{self.base_url}mine/", **self.member_headers)
        self.assertEqual({t['title'] for t in response.json()}, {"Mine to do", "I asked for it"})
        response = self.client.get(f"{self.base_url}mine/?scope=assigned", **self.member_headers)
        self.assertEqual([t['title'] for t in response.json()], ["Mine to do"])
        response = self.client.get(f"{self.base_url}mine/?scope=created", **self.member_headers)
        self.assertEqual([t['title'] for t in response.json()], ["I asked for it"])

    def test_my_tasks_status_filter(self):
        Todo.objects.create(title="Open", created_by=self.member, assigned_to=self.member)
        Todo.objects.create(title="Finished", created_by=self.member, assigned_to=self.member, status=Todo.Status.DONE)
        response = self.client.get(f"{self.base_url}mine/?status=done", **self.member_headers)
        self.assertEqual([t['title'] for t in response.json()], ["Finished"])

    def test_toggle_by_assignee(self):
        todo = Todo.objects.create(meeting=self.meeting, title="Toggle me", created_by=self.owner, assigned_to=self.member)
        response = self.client.post(f"{self.base_url}{todo.id}/toggle/", **self.member_headers)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['status'], 'done')
        response = self.client.post(f"{self.base_url}{todo.id}/toggle/", **self.member_headers)
        self.assertEqual(response.json()['status'], 'pending')

    def test_update_by_other_member_forbidden(self):
        todo = Todo.objects.create(meeting=self.meeting, title="Owner's task", created_by=self.owner, assigned_to=self.owner)
        response = self.client.put(f"{self.base_url}{todo.id}/", data=json.dumps({"title": "Changed"}),
                                   content_type='application/json', **self.member_headers)
        self.assertEqual(response.status_code, 403)
        todo.refresh_from_db()
        self.assertEqual(todo.title, "Owner's task")

    def test_update_by_creator(self):
        todo = Todo.objects.create(meeting=self.meeting, title="Draft", created_by=self.owner)
        response = self.client.put(f"{self.base_url}{todo.id}/", data=json.dumps({"title": "Final", "due_date": "2030-04-01"}),
                                   content_type='application/json', **self.auth_headers)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['title'], "Final")
        self.assertEqual(response.json()['due_date'], "2030-04-01")

    def test_delete_by_stranger_not_found(self):
        todo = Todo.objects.create(meeting=self.meeting, title="Keep", created_by=self.owner)
        response = self.client.delete(f"{self.base_url}{todo.id}/", **self.stranger_headers)
        self.assertEqual(response.status_code, 404)
        self.assertTrue(Todo.objects.filter(id=todo.id).exists())

    def test_delete_by_creator(self):
        todo = Todo.objects.create(meeting=self.meeting, title="Drop", created_by=self.owner)
        response = self.client.delete(f"{self.base_url}{todo.id}/", **self.auth_headers)
        self.assertEqual(response.status_code, 204)
        self.assertFalse(Todo.objects.filter(id=todo.id).exists())

    def meeting_todo_ids(self, headers):
        return [t['id'] for t in self.client.get(f"{self.meeting_url}?status=pending", **headers).json()]

    @override_settings(TODO_ORDERING_ENABLED=True)
    def test_member_reorders_meeting_todos(self):
        for title in ("Agenda", "Minutes", "Follow-up"):
            Todo.objects.create(meeting=self.meeting, title=title, created_by=self.owner)
        loaded = self.meeting_todo_ids(self.member_headers)

        response = self.post_json(f"{self.base_url}reorder/", {"ids": loaded, "source_index": 0, "destination_index": 2,
                                                               "meeting_id": self.meeting.id}, self.member_headers)
        self.assertEqual(response.status_code, 200)
        expected = [loaded[1], loaded[2], loaded[0]]
        self.assertEqual(response.json()['ids'], expected)
        self.assertEqual(self.meeting_todo_ids(self.auth_headers), expected)
        indexes = dict(Todo.objects.values_list('id', 'order_index'))
        self.assertEqual([indexes[todo_id] for todo_id in expected], [0, 1, 2])

    @override_settings(TODO_ORDERING_ENABLED=True)
    def test_stranger_cannot_reorder_meeting_todos(self):
        for title in ("Agenda", "Minutes"):
            Todo.objects.create(meeting=self.meeting, title=title, created_by=self.owner)
        loaded = self.meeting_todo_ids(self.auth_headers)

        response = self.post_json(f"{self.base_url}reorder/", {"ids": loaded, "source_index": 0, "destination_index": 1,
                                                               "meeting_id": self.meeting.id}, self.stranger_headers)
        self.assertEqual(response.status_code, 404)
        self.assertFalse(Todo.objects.filter(order_index__isnull=False).exists())


class TodoOrderingTestCase(TestCase):

    def setUp(self):
        self.client = Client()
        self.user = User.objects.create_user(username='planner@example.com', email='planner@example.com', password='password123')
        self.auth_headers = {'HTTP_AUTHORIZATION': f'Bearer {get_tokens_for_user(self.user)["access"]}'}
        self.undated = Todo.objects.create(title="Someday", created_by=self.user, assigned_to=self.user)
        self.later = Todo.objects.create(title="Later", created_by=self.user, assigned_to=self.user, due_date=date(2024, 1, 3))
        self.sooner = Todo.objects.create(title="Sooner", created_by=self.user, assigned_to=self.user, due_date=date(2024, 1, 1))

    def titles(self):
        return [t['title'] for t in self.client.get('/api/todos/mine/', **self.auth_headers).json()]

    def listed_ids(self):
        return [t['id'] for t in self.client.get('/api/todos/mine/?status=pending', **self.auth_headers).json()]

    def reorder(self, source, destination, ids=None):
        payload = {"ids": self.listed_ids() if ids is None else ids, "source_index": source, "destination_index": destination}
        return self.client.post('/api/todos/reorder/', data=json.dumps(payload), content_type='application/json',
                                **self.auth_headers)

    @override_settings(TODO_ORDERING_ENABLED=False)
    def test_without_ordering_sorts_by_due_date_nulls_last(self):
        Todo.objects.filter(id=self.undated.id).update(order_index=0)
        self.assertEqual(self.titles(), ["Sooner", "Later", "Someday"])

    @override_settings(TODO_ORDERING_ENABLED=False)
    def test_reorder_disabled_conflicts(self):
        response = self.reorder(0, 2)
        self.assertEqual(response.status_code, 409)
        self.assertFalse(Todo.objects.filter(order_index__isnull=False).exists())

    @override_settings(TODO_ORDERING_ENABLED=True)
    def test_unordered_tasks_fall_back_to_due_date(self):
        self.assertEqual(self.titles(), ["Sooner", "Later", "Someday"])

    @override_settings(TODO_ORDERING_ENABLED=True)
    def test_reorder_persists_positions(self):
        response = self.reorder(2, 0)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['ids'], [self.undated.id, self.sooner.id, self.later.id])
        self.assertEqual(self.titles(), ["Someday", "Sooner", "Later"])
        indexes = dict(Todo.objects.values_list('id', 'order_index'))
        self.assertEqual(indexes, {self.undated.id: 0, self.sooner.id: 1, self.later.id: 2})

    @override_settings(TODO_ORDERING_ENABLED=True)
    def test_reorder_out_of_range(self):
        response = self.reorder(0, 5)
        self.assertEqual(response.status_code, 400)

    @override_settings(TODO_ORDERING_ENABLED=True)
    def test_reorder_of_outdated_list_conflicts(self):
        loaded = self.listed_ids()
        Todo.objects.create(title="Fresh", created_by=self.user, assigned_to=self.user)

        response = self.reorder(2, 0, ids=loaded)
        self.assertEqual(response.status_code, 409)
        self.assertIn("changed since it was loaded", response.json()['detail'])
        self.assertFalse(Todo.objects.filter(order_index__isnull=False).exists())

    @override_settings(TODO_ORDERING_ENABLED=True)
    def test_reorder_rejects_ids_from_another_list(self):
        other = User.objects.create_user(username='other@example.com', email='other@example.com', password='password123')
        foreign = Todo.objects.create(title="Not mine", created_by=other, assigned_to=other)
        response = self.reorder(0, 1, ids=[foreign.id, self.sooner.id, self.later.id])
        self.assertEqual(response.status_code, 409)
        self.assertFalse(Todo.objects.filter(order_index__isnull=False).exists())

    @override_settings(TODO_ORDERING_ENABLED=True)
    def test_reorder_save_failure_reports_server_error(self):
        loaded = self.listed_ids()
        original_update = QuerySet.update
        calls = []

        def failing_second_update(queryset, **kwargs):
            calls.append(kwargs)
            if len(calls) == 2:
                raise DatabaseError("connection lost")
            return original_update(queryset, **kwargs)

        with mock.patch.object(QuerySet, 'update', autospec=True, side_effect=failing_second_update):
            response = self.reorder(2, 0, ids=loaded)

        self.assertEqual(response.status_code, 500)
        self.assertIn("Reload the list", response.json()['detail'])
        self.assertEqual(Todo.objects.get(id=self.undated.id).order_index, 0)

    @override_settings(TODO_ORDERING_ENABLED=True)
    def test_capabilities_reports_ordering(self):
        self.assertTrue(self.client.get('/api/capabilities').json()['todo_ordering'])
        with self.settings(TODO_ORDERING_ENABLED=False):
            self.assertFalse(self.client.get('/api/capabilities').json()['todo_ordering'])
