import unittest
from unittest import mock

from restaurantos.core.config import get_settings
from tests.support import ApiTestCase


class SignUpTests(ApiTestCase):
    seed_floor = False

    def test_sign_up_returns_token_and_profile(self):
        body = self.sign_up("waiter", email="Anna@RestaurantOS.de", name="Anna Schmidt")
        self.assertTrue(body["access_token"])
        self.assertEqual(body["token_type"], "bearer")
        self.assertEqual(body["user"]["email"], "anna@restaurantos.de")
        self.assertEqual(body["user"]["role"], "waiter")

    def test_role_defaults_to_customer(self):
        response = self.client.post("/api/auth/signup", json={
            "email": "gast@example.com", "password": "secret123", "name": "Gast",
        })
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()["user"]["role"], "customer")

    def test_duplicate_email(self):
        self.sign_up("manager", email="chef@restaurantos.de")
        response = self.client.post("/api/auth/signup", json={
            "email": "chef@restaurantos.de", "password": "secret123", "name": "Other", "role": "waiter",
        })
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["detail"], "An account with this email already exists")

    def test_invalid_input(self):
        for payload in (
            {"email": "not-an-email", "password": "secret123", "name": "X"},
            {"email": "x@example.com", "password": "123", "name": "X"},
            {"email": "x@example.com", "password": "secret123", "name": "   "},
            {"email": "x@example.com", "password": "secret123", "name": "X", "role": "owner"},
        ):
            with self.subTest(payload=payload):
                self.assertEqual(self.client.post("/api/auth/signup", json=payload).status_code, 422)

    def test_minimum_password_length_follows_settings(self):
        payload = {"email": "lang@example.com", "password": "secret123", "name": "Lang"}
        with mock.patch.object(get_settings(), "min_password_length", 12):
            response = self.client.post("/api/auth/signup", json=payload)
            self.assertEqual(response.status_code, 422)
            self.assertIn("at least 12 characters", response.text)
        self.assertEqual(self.client.post("/api/auth/signup", json=payload).status_code, 201)


class SignInTests(ApiTestCase):
    seed_floor = False

    def setUp(self):
        super().setUp()
        self.sign_up("kitchen", email="koch@restaurantos.de")

    def test_login(self):
        response = self.client.post("/api/auth/login", json={
            "email": "KOCH@restaurantos.de", "password": "secret123",
        })
        self.assertEqual(response.status_code, 200)
        token = response.json()["access_token"]

        me = self.client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        self.assertEqual(me.status_code, 200)
        self.assertEqual(me.json()["role"], "kitchen")

    def test_wrong_password_and_unknown_user(self):
        for email, password in (("koch@restaurantos.de", "wrong-pass"), ("nobody@restaurantos.de", "secret123")):
            response = self.client.post("/api/auth/login", json={"email": email, "password": password})
            self.assertEqual(response.status_code, 401)
            self.assertEqual(response.json()["detail"], "Invalid email or password")

    def test_protected_endpoints_need_a_valid_token(self):
        self.assertEqual(self.client.get("/api/auth/me").status_code, 401)
        response = self.client.get("/api/auth/me", headers={"Authorization": "Bearer garbage"})
        self.assertEqual(response.status_code, 401)

    def test_logout(self):
        response = self.client.post("/api/auth/logout", headers=self.headers("customer"))
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.json()["success"])


class PasswordResetTests(ApiTestCase):
    seed_floor = False

    def setUp(self):
        super().setUp()
        self.sign_up("waiter", email="anna@restaurantos.de", name="Anna")

    def _request_reset_token(self) -> str:
        response = self.client.post("/api/auth/forgot-password", json={"email": "anna@restaurantos.de"})
        self.assertEqual(response.status_code, 200)
        body = self.notifier.sent[-1]["body_text"]
        return body.split("token=")[1].split()[0]

    def test_reset_link_is_emailed(self):
        self._request_reset_token()
        sent = self.notifier.sent[-1]
        self.assertEqual(sent["to"], "anna@restaurantos.de")
        self.assertIn("/reset-password?token=", sent["body_text"])

    def test_unknown_email_gets_the_same_answer(self):
        known = self.client.post("/api/auth/forgot-password", json={"email": "anna@restaurantos.de"})
        unknown = self.client.post("/api/auth/forgot-password", json={"email": "ghost@restaurantos.de"})
        self.assertEqual(known.json(), unknown.json())
        self.assertEqual(len(self.notifier.sent), 1)

    def test_reset_password_then_login(self):
        token = self._request_reset_token()
        response = self.client.post("/api/auth/reset-password", json={"token": token, "new_password": "neues-pw"})
        self.assertEqual(response.status_code, 200)

        old = self.client.post("/api/auth/login", json={"email": "anna@restaurantos.de", "password": "secret123"})
        new = self.client.post("/api/auth/login", json={"email": "anna@restaurantos.de", "password": "neues-pw"})
        self.assertEqual(old.status_code, 401)
        self.assertEqual(new.status_code, 200)

    def test_token_works_once(self):
        token = self._request_reset_token()
        self.client.post("/api/auth/reset-password", json={"token": token, "new_password": "neues-pw"})
        again = self.client.post("/api/auth/reset-password", json={"token": token, "new_password": "drittes-pw"})
        self.assertEqual(again.status_code, 400)

    def test_garbage_token(self):
        response = self.client.post("/api/auth/reset-password", json={"token": "abc", "new_password": "neues-pw"})
        self.assertEqual(response.status_code, 400)

    def test_new_password_too_short(self):
        token = self._request_reset_token()
        response = self.client.post("/api/auth/reset-password", json={"token": token, "new_password": "kurz"})
        self.assertEqual(response.status_code, 422)

    def test_name_is_escaped_in_the_html_email(self):
        self.sign_up("customer", email="mallory@example.com", name='<a href="https://evil.example">Mallory</a>')
        self.client.post("/api/auth/forgot-password", json={"email": "mallory@example.com"})
        html = self.notifier.sent[-1]["body_html"]
        self.assertNotIn("evil.example\">", html)
        self.assertIn("&lt;a href=", html)
        self.assertIn("/reset-password?token=", html)


if __name__ == "__main__":
    unittest.main()
