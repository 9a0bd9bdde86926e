from django.test import TestCase, SimpleTestCase, Client
from django.contrib.auth.models import User
from datetime import date, time

from discussions.models import DiscussionItem
from meetings.services import create_meeting
from .exceptions import Conflict, FeatureDisabled, ServiceError
from .ordering import move_item, reorder, same_members


class MoveItemTestCase(SimpleTestCase):

    def test_moves_forward(self):
        self.assertEqual(move_item(["a", "b", "c", "d"], 0, 2), ["b", "c", "a", "d"])

    def test_moves_backward(self):
        self.assertEqual(move_item(["a", "b", "c", "d"], 3, 1), ["a", "d", "b", "c"])

    def test_same_index_returns_copy(self):
        items = ["a", "b"]
        moved = move_item(items, 1, 1)
        self.assertEqual(moved, items)
        self.assertIsNot(moved, items)

    def test_result_is_permutation(self):
        items = list(range(7))
        for source in range(7):
            for destination in range(7):
                moved = move_item(items, source, destination)
                self.assertEqual(sorted(moved), items)
                self.assertEqual(moved[destination], source)

    def test_out_of_range(self):
        with self.assertRaises(ValueError):
            move_item(["a"], 1, 0)
        with self.assertRaises(ValueError):
            move_item(["a", "b"], 0, -1)


class SameMembersTestCase(SimpleTestCase):

    def test_any_order_of_the_same_rows(self):
        self.assertTrue(same_members([3, 1, 2], [1, 2, 3]))

    def test_missing_or_extra_rows(self):
        self.assertFalse(same_members([1, 2], [1, 2, 3]))
        self.assertFalse(same_members([1, 2, 3, 4], [1, 2, 3]))

    def test_repeated_row(self):
        self.assertFalse(same_members([1, 1, 2], [1, 2]))


class ReorderTestCase(TestCase):

    def setUp(self):
        user = User.objects.create_user(username='o@example.com', email='o@example.com', password='password123')
        meeting = create_meeting(user, {"title": "Ordering", "scheduled_date": date(2030, 1, 1), "scheduled_time": time(9, 0)})
        self.items = [DiscussionItem.objects.create(meeting=meeting, title=str(i), order_index=i, created_by=user) for i in range(4)]
        self.ids = [i.id for i in self.items]

    def test_no_writes_when_source_equals_destination(self):
        with self.assertNumQueries(0):
            self.assertEqual(reorder(DiscussionItem, self.ids, 2, 2), self.ids)

    def test_only_changed_rows_are_written(self):
        # Swapping the last two leaves rows 0 and 1 untouched: one read plus two updates.
        with self.assertNumQueries(3):
            new_order = reorder(DiscussionItem, self.ids, 3, 2)
        self.assertEqual(new_order, [self.ids[0], self.ids[1], self.ids[3], self.ids[2]])
        stored = dict(DiscussionItem.objects.values_list('id', 'order_index'))
        for position, item_id in enumerate(new_order):
            self.assertEqual(stored[item_id], position)


class ExceptionsTestCase(SimpleTestCase):

    def test_feature_disabled_is_conflict(self):
        error = FeatureDisabled("Task reordering is not available")
        self.assertIsInstance(error, Conflict)
        self.assertIsInstance(error, ServiceError)
        self.assertEqual(error.status_code, 409)
        self.assertEqual(error.detail, "Task reordering is not available")


class HealthTestCase(TestCase):

    def test_health(self):
        response = Client().get('/api/health')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"status": "ok"})
