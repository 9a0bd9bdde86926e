from django.test import TestCase, Client, override_settings

# Create your tests here.

import json
from unittest import mock
from django.contrib.auth.models import User
from django.contrib.auth.tokens import default_token_generator
from django.utils.encoding import force_bytes
from django.utils.http import urlsafe_base64_encode
from ninja_jwt.token_blacklist.models import BlacklistedToken

from .models import Profile


@override_settings(RESEND_API_KEY=None)
class AccountsAPITestCase(TestCase):

    def setUp(self):
        self.client = Client()
        self.base_url = '/api/accounts/'

    def post_json(self, path, data, **extra):
        return self.client.post(f"{self.base_url}{path}", data=json.dumps(data), content_type='application/json', **extra)

    def sign_up(self, email="new@example.com", password="secret1", full_name="New Person"):
        return self.post_json("sign-up/", {"email": email, "password": password, "full_name": full_name})

    def test_sign_up_creates_user_and_profile(self):
        response = self.sign_up(email="New@Example.com")
        self.assertEqual(response.status_code, 201)
        user = User.objects.get(email="new@example.com")
        self.assertEqual(user.profile.full_name, "New Person")

    def test_sign_up_missing_fields(self):
        response = self.sign_up(password="")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['detail'], "Email and password are required")

    def test_sign_up_short_password(self):
        response = self.sign_up(password="12345")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['detail'], "Password should be at least 6 characters")

    def test_sign_up_duplicate(self):
        self.sign_up()
        response = self.sign_up()
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['detail'], "User already registered")

    def test_sign_in_returns_tokens_and_profile(self):
        self.sign_up()
        response = self.post_json("sign-in/", {"email": "new@example.com", "password": "secret1"})
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertTrue(body['access'])
        self.assertTrue(body['refresh'])
        self.assertEqual(body['profile']['email'], "new@example.com")

    def test_sign_in_creates_missing_profile(self):
        user = User.objects.create_user(username='legacy@example.com', email='legacy@example.com', password='secret1')
        response = self.post_json("sign-in/", {"email": "legacy@example.com", "password": "secret1"})
        self.assertEqual(response.status_code, 200)
        self.assertTrue(Profile.objects.filter(user=user).exists())

    def test_sign_in_bad_credentials(self):
        self.sign_up()
        response = self.post_json("sign-in/", {"email": "new@example.com", "password": "wrong-password"})
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()['detail'], "Invalid login credentials")

    def test_sign_out_blacklists_refresh_token(self):
        self.sign_up()
        session = self.post_json("sign-in/", {"email": "new@example.com", "password": "secret1"}).json()
        headers = {'HTTP_AUTHORIZATION': f'Bearer {session["access"]}'}
        response = self.post_json("sign-out/", {"refresh": session['refresh']}, **headers)
        self.assertEqual(response.status_code, 204)
        self.assertTrue(BlacklistedToken.objects.filter(token__user__email="new@example.com").exists())

    def test_profile_read_and_update(self):
        self.sign_up()
        session = self.post_json("sign-in/", {"email": "new@example.com", "password": "secret1"}).json()
        headers = {'HTTP_AUTHORIZATION': f'Bearer {session["access"]}'}
        response = self.client.put(f"{self.base_url}me/", data=json.dumps({"full_name": "  Renamed  "}),
                                   content_type='application/json', **headers)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['full_name'], "Renamed")
        self.assertEqual(self.client.get(f"{self.base_url}me/", **headers).json()['full_name'], "Renamed")

    def test_password_reset_request_is_uniform(self):
        unknown = self.post_json("password-reset/", {"email": "nobody@example.com"})
        self.sign_up()
        known = self.post_json("password-reset/", {"email": "new@example.com"})
        self.assertEqual(known.status_code, 200)
        self.assertEqual(known.json(), unknown.json())

    @override_settings(RESEND_API_KEY="re_test_key", SITE_URL="https://app.example.com", DEV_REDIRECT_URL=None)
    @mock.patch('notifications.dispatcher.resend.Emails.send')
    def test_password_reset_email_contains_link(self, mock_send):
        self.sign_up()
        response = self.post_json("password-reset/", {"email": "new@example.com"})
        self.assertEqual(response.status_code, 200)
        payload = mock_send.call_args[0][0]
        self.assertEqual(payload['to'], ["new@example.com"])
        self.assertEqual(payload['subject'], "Reset Your Password - TimeToMeet")
        self.assertIn("https://app.example.com/?page=reset-password&amp;uid=", payload['html'])

    def test_password_reset_confirm(self):
        self.sign_up()
        user = User.objects.get(email="new@example.com")
        data = {"uid": urlsafe_base64_encode(force_bytes(user.pk)), "token": default_token_generator.make_token(user),
                "password": "brand-new", "confirm_password": "brand-new"}
        response = self.post_json("password-reset/confirm/", data)
        self.assertEqual(response.status_code, 200)
        user.refresh_from_db()
        self.assertTrue(user.check_password("brand-new"))

    def test_password_reset_confirm_validation(self):
        self.sign_up()
        user = User.objects.get(email="new@example.com")
        data = {"uid": urlsafe_base64_encode(force_bytes(user.pk)), "token": default_token_generator.make_token(user),
                "password": "brand-new", "confirm_password": "different"}
        self.assertEqual(self.post_json("password-reset/confirm/", data).json()['detail'], "Passwords do not match")
        data.update(password="short", confirm_password="short")
        self.assertEqual(self.post_json("password-reset/confirm/", data).json()['detail'],
                         "Password must be at least 6 characters long")
        data.update(password="long-enough", confirm_password="long-enough", token="bad-token")
        response = self.post_json("password-reset/confirm/", data)
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['detail'], "Invalid or expired password reset link")
