"""
Tests for Supabase token validation and user matching.
"""

import unittest

from db_helpers import OTHER_USER_ID, USER_ID, ApiTestCase, auth_headers, make_token

from charasphere.api.dependencies import decode_access_token, extract_token_from_header


class TestDecodeAccessToken(unittest.TestCase):

    def test_valid_token(self):
        claims = decode_access_token(make_token(USER_ID, email="p@example.com"))
        self.assertEqual(claims["sub"], USER_ID)
        self.assertEqual(claims["email"], "p@example.com")

    def test_wrong_secret(self):
        token = make_token(USER_ID, secret="another-secret-that-is-long-enough-1234")
        self.assertIsNone(decode_access_token(token))

    def test_expired(self):
        self.assertIsNone(decode_access_token(make_token(USER_ID, expires_in=-60)))

    def test_wrong_audience(self):
        self.assertIsNone(decode_access_token(make_token(USER_ID, audience="anon")))

    def test_missing_subject(self):
        self.assertIsNone(decode_access_token(make_token("")))

    def test_garbage(self):
        self.assertIsNone(decode_access_token("not-a-jwt"))


class TestExtractToken(unittest.TestCase):

    def test_bearer(self):
        self.assertEqual(extract_token_from_header("Bearer abc.def"), "abc.def")

    def test_rejects_other_schemes(self):
        self.assertIsNone(extract_token_from_header(None))
        self.assertIsNone(extract_token_from_header("Basic abc"))
        self.assertIsNone(extract_token_from_header("Bearer "))


class TestRouteAuthentication(ApiTestCase):

    def test_missing_header(self):
        response = self.client.get("/api/player-stats", params={"userId": USER_ID})
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json(), {"error": "Authorization header required"})

    def test_invalid_token(self):
        response = self.client.get(
            "/api/player-stats",
            params={"userId": USER_ID},
            headers={"Authorization": "Bearer nope"},
        )
        self.assertEqual(response.status_code, 401)

    def test_user_id_must_match_token(self):
        response = self.post("/api/refresh-moves", user_id=OTHER_USER_ID)
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json(), {"error": "Unauthorized request"})

    def test_user_id_is_required(self):
        response = self.client.post("/api/refresh-moves", json={}, headers=self.headers)
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {"error": "User ID is required"})

    def test_user_id_spellings(self):
        for key in ("userId", "userid", "user_id"):
            response = self.client.post(
                "/api/refresh-moves", json={key: USER_ID}, headers=auth_headers(USER_ID)
            )
            self.assertEqual(response.status_code, 200, key)

    def test_first_request_creates_player(self):
        self.assertIsNone(self.stats_row())
        self.client.get("/api/player-stats", params={"userId": USER_ID}, headers=self.headers)
        self.assertEqual(self.stats_row()["moves"], 30)


if __name__ == "__main__":
    unittest.main()
