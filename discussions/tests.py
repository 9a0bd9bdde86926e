from django.test import TestCase, Client

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
from .models import DiscussionItem

def get_tokens_for_user(user):
    refresh = RefreshToken.for_user(user)
    return {'access': str(refresh.access_token)}


class DiscussionAPITestCase(TestCase):

    def setUp(self):
        self.client = Client()
        self.owner = User.objects.create_user(username='owner@example.com', email='owner@example.com', password='password123')
        self.auth_headers = {'HTTP_AUTHORIZATION': f'Bearer {get_tokens_for_user(self.owner)["access"]}'}
        self.member = User.objects.create_user(username='member@example.com', email='member@example.com', password='password123')
        self.member_headers = {'HTTP_AUTHORIZATION': f'Bearer {get_tokens_for_user(self.member)["access"]}'}
        self.meeting = create_meeting(self.owner, {"title": "Retro", "scheduled_date": date(2030, 5, 2), "scheduled_time": time(11, 0)})
        MeetingParticipant.objects.create(meeting=self.meeting, user=self.member, email='member@example.com')
        self.meeting_url = f'/api/discussions/meeting/{self.meeting.id}/'
        self.base_url = '/api/discussions/'

    def add(self, title, headers=None):
        return self.client.post(self.meeting_url, data=json.dumps({"title": title}), content_type='application/json',
                                **(headers or self.auth_headers))

    def listed_titles(self, query=""):
        return [i['title'] for i in self.client.get(f"{self.meeting_url}{query}", **self.auth_headers).json()]

    def listed_ids(self, query=""):
        return [i['id'] for i in self.client.get(f"{self.meeting_url}{query}", **self.auth_headers).json()]

    def reorder(self, ids, source, destination, headers=None):
        payload = {"ids": ids, "source_index": source, "destination_index": destination}
        return self.client.post(f"{self.meeting_url}reorder/", data=json.dumps(payload), content_type='application/json',
                                **(headers or self.auth_headers))

    def test_new_items_are_appended_to_pending_list(self):
        for title in ("A", "B", "C"):
            self.assertEqual(self.add(title).status_code, 201)
        self.assertEqual(list(DiscussionItem.objects.order_by('id').values_list('order_index', flat=True)), [0, 1, 2])
        self.assertEqual(self.listed_titles(), ["A", "B", "C"])

    def test_reorder_moves_item_and_rewrites_positions(self):
        for title in ("A", "B", "C", "D"):
            self.add(title)
        response = self.reorder(self.listed_ids(), 0, 2, self.member_headers)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(self.listed_titles(), ["B", "C", "A", "D"])
        positions = {i.title: i.order_index for i in DiscussionItem.objects.all()}
        self.assertEqual(positions, {"B": 0, "C": 1, "A": 2, "D": 3})

    def test_reorder_same_position_is_noop(self):
        for title in ("A", "B"):
            self.add(title)
        before = list(DiscussionItem.objects.order_by('id').values_list('order_index', 'updated_at'))
        response = self.reorder(self.listed_ids(), 1, 1)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(list(DiscussionItem.objects.order_by('id').values_list('order_index', 'updated_at')), before)

    def test_reorder_of_outdated_list_conflicts(self):
        for title in ("A", "B", "C"):
            self.add(title)
        loaded = self.listed_ids()
        self.add("X", self.member_headers)
        before = dict(DiscussionItem.objects.values_list('title', 'order_index'))

        response = self.reorder(loaded, 0, 2)
        self.assertEqual(response.status_code, 409)
        self.assertIn("changed since it was loaded", response.json()['detail'])
        self.assertEqual(dict(DiscussionItem.objects.values_list('title', 'order_index')), before)
        self.assertEqual(self.listed_titles(), ["A", "B", "C", "X"])

    def test_reorder_rejects_repeated_ids(self):
        for title in ("A", "B"):
            self.add(title)
        first, _ = self.listed_ids()
        response = self.reorder([first, first], 0, 1)
        self.assertEqual(response.status_code, 409)

    def test_reorder_save_failure_reports_server_error(self):
        for title in ("A", "B", "C"):
            self.add(title)
        loaded = self.listed_ids()
        original_update = QuerySet.update
        calls = []

        def failing_second_update(queryset, **kwargs):
            calls.append(kwargs)
            if len(calls) == 2:
                raise DatabaseError("connection lost")
            return original_update(queryset, **kwargs)

        with mock.patch.object(QuerySet, 'update', autospec=True, side_effect=failing_second_update):
            response = self.reorder(loaded, 2, 0)

        self.assertEqual(response.status_code, 500)
        self.assertIn("Reload the list", response.json()['detail'])
        # The first write landed before the failure.
        self.assertEqual(DiscussionItem.objects.get(title="C").order_index, 0)

    def test_mark_done_moves_item_to_done_list(self):
        item_id = self.add("Budget", self.member_headers).json()['id']
        response = self.client.post(f"{self.base_url}{item_id}/done/", **self.auth_headers)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['status'], 'done')
        self.assertEqual(self.listed_titles(), [])
        self.assertEqual(self.listed_titles("?status=done"), ["Budget"])

        response = self.client.post(f"{self.base_url}{item_id}/reopen/", **self.member_headers)
        self.assertEqual(response.json()['status'], 'pending')

    def test_other_member_cannot_complete_owners_item(self):
        item_id = self.add("Owner topic").json()['id']
        response = self.client.post(f"{self.base_url}{item_id}/done/", **self.member_headers)
        self.assertEqual(response.status_code, 403)

    def test_update_only_by_item_creator(self):
        item_id = self.add("Typo", self.member_headers).json()['id']
        url = f"{self.base_url}{item_id}/"
        response = self.client.put(url, data=json.dumps({"title": "Fixed"}), content_type='application/json', **self.auth_headers)
        self.assertEqual(response.status_code, 403)
        response = self.client.put(url, data=json.dumps({"title": "Fixed"}), content_type='application/json', **self.member_headers)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['title'], "Fixed")

    def test_meeting_creator_can_delete_any_item(self):
        item_id = self.add("Off topic", self.member_headers).json()['id']
        response = self.client.delete(f"{self.base_url}{item_id}/", **self.auth_headers)
        self.assertEqual(response.status_code, 204)
        self.assertFalse(DiscussionItem.objects.filter(id=item_id).exists())

    def test_blank_title_rejected(self):
        response = self.add("   ")
        self.assertIn(response.status_code, [400, 422])
        self.assertFalse(DiscussionItem.objects.exists())
