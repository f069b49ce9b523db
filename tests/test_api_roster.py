"""
HTTP tests for the roster, collection, AI bridge and sync routes.
"""

import unittest
from unittest import mock

from db_helpers import OTHER_USER_ID, USER_ID, ApiTestCase

from charasphere.api import config
from charasphere.utils.flux import TIMED_OUT
from charasphere.utils.grok import GrokError
from charasphere.utils.sheets import SheetsSyncError


class TestCharacterRoutes(ApiTestCase):

    def test_list_is_ordered_by_name(self):
        series_id = self.seed_series()
        self.seed_characters(1, prefix="Zed", series_id=series_id)
        self.seed_characters(1, prefix="Ava", series_id=series_id)

        body = self.client.get("/api/characters", headers=self.headers).json()

        self.assertEqual([c["name"] for c in body["characters"]], ["Ava 1", "Zed 1"])
        self.assertEqual(body["characters"][0]["series"]["name"], "Arcane Chronicles")
        self.assertEqual(body["characters"][0]["generated_images"], [])

    def test_store_image_fills_slots_in_order(self):
        (character_id,) = self.seed_characters(1)

        first = self.client.post(
            "/api/store-image",
            json={"characterId": character_id, "imageUrl": "https://img/1.jpg", "seed": 7},
            headers=self.headers,
        )
        self.assertEqual(first.json(), {"success": True, "field": "image1url"})

        for index in range(2, 7):
            response = self.client.post(
                "/api/store-image",
                json={"characterId": character_id, "imageUrl": f"https://img/{index}.jpg"},
                headers=self.headers,
            )
            self.assertEqual(response.json()["field"], f"image{index}url")

        full = self.client.post(
            "/api/store-image",
            json={"characterId": character_id, "imageUrl": "https://img/7.jpg"},
            headers=self.headers,
        )
        self.assertEqual(full.status_code, 400)
        self.assertEqual(full.json(), {"error": "Maximum of 6 images allowed"})

        listed = self.client.get("/api/characters", headers=self.headers).json()
        images = listed["characters"][0]["generated_images"]
        self.assertEqual([(i["url"], i["seed"]) for i in images], [("https://img/1.jpg", 7)])

    def test_store_image_unknown_character(self):
        response = self.client.post(
            "/api/store-image",
            json={"characterId": 404, "imageUrl": "https://img/1.jpg"},
            headers=self.headers,
        )
        self.assertEqual(response.status_code, 404)

    def test_delete_image(self):
        (character_id,) = self.seed_characters(1)
        self.client.post(
            "/api/store-image",
            json={"characterId": character_id, "imageUrl": "https://img/1.jpg"},
            headers=self.headers,
        )

        response = self.client.delete(
            "/api/delete-image",
            params={"characterid": character_id, "field": "image1url"},
            headers=self.headers,
        )
        self.assertEqual(response.json(), {"success": True})
        listed = self.client.get("/api/characters", headers=self.headers).json()
        self.assertIsNone(listed["characters"][0]["image1url"])

    def test_delete_image_rejects_unknown_field(self):
        (character_id,) = self.seed_characters(1)
        response = self.client.delete(
            "/api/delete-image",
            params={"characterid": character_id, "field": "name"},
            headers=self.headers,
        )
        self.assertEqual(response.status_code, 400)

    def test_delete_image_unknown_character(self):
        response = self.client.delete(
            "/api/delete-image",
            params={"characterid": 404, "field": "image2url"},
            headers=self.headers,
        )
        self.assertEqual(response.status_code, 404)


class TestCollectionRoutes(ApiTestCase):

    def test_collection_lists_owned_characters(self):
        ids = self.seed_characters(3)
        self.give_character(USER_ID, ids[0])
        self.give_character(OTHER_USER_ID, ids[1])

        body = self.client.get(
            "/api/collection", params={"userId": USER_ID}, headers=self.headers
        ).json()

        self.assertEqual([entry["characterid"] for entry in body["collection"]], [ids[0]])
        self.assertEqual(body["collection"][0]["character"]["name"], "Hero 1")

    def test_update_favorite_keeps_unsent_fields(self):
        (character_id,) = self.seed_characters(1)
        self.give_character(USER_ID, character_id)

        first = self.post(
            "/api/collection/favorite",
            {"characterId": character_id, "favorite": True, "customName": "Captain"},
        ).json()
        self.assertTrue(first["entry"]["favorite"])
        self.assertEqual(first["entry"]["custom_name"], "Captain")

        second = self.post(
            "/api/collection/favorite", {"characterId": character_id, "selectedImageId": 3}
        ).json()
        self.assertTrue(second["entry"]["favorite"])
        self.assertEqual(second["entry"]["custom_name"], "Captain")
        self.assertEqual(second["entry"]["selected_image_id"], 3)

        cleared = self.post(
            "/api/collection/favorite", {"characterId": character_id, "customName": None}
        ).json()
        self.assertIsNone(cleared["entry"]["custom_name"])

    def test_update_character_not_owned(self):
        (character_id,) = self.seed_characters(1)
        response = self.post(
            "/api/collection/favorite", {"characterId": character_id, "favorite": True}
        )
        self.assertEqual(response.status_code, 404)


class TestGrokRoute(ApiTestCase):

    def test_requires_key(self):
        response = self.client.post("/api/grok", json={"message": "hi"}, headers=self.headers)
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json(), {"error": "API key is required"})

    def test_requires_message(self):
        response = self.client.post("/api/grok", json={"apiKey": "k"}, headers=self.headers)
        self.assertEqual(response.status_code, 400)

    def test_plain_reply(self):
        chat = mock.AsyncMock(return_value=("Hello!", None))
        with mock.patch.object(config.grok_util, "chat_with_image_tool", chat):
            response = self.client.post(
                "/api/grok", json={"message": "hi", "apiKey": "k"}, headers=self.headers
            )
        self.assertEqual(response.json(), {"content": "Hello!"})
        chat.assert_awaited_once_with("hi", api_key="k")

    def test_image_request_goes_through_flux(self):
        chat = mock.AsyncMock(return_value=("", "a fox"))
        generate = mock.AsyncMock(return_value=("https://img/fox.jpg", None))
        with mock.patch.object(config.grok_util, "chat_with_image_tool", chat), mock.patch.object(
            config.flux_util, "generate_image", generate
        ):
            response = self.client.post(
                "/api/grok", json={"message": "draw a fox", "apiKey": "k"}, headers=self.headers
            )
        self.assertEqual(
            response.json(),
            {
                "content": "I've generated an image based on your request.",
                "image_url": "https://img/fox.jpg",
            },
        )

    def test_image_failure_is_reported_inline(self):
        chat = mock.AsyncMock(return_value=("", "a fox"))
        generate = mock.AsyncMock(return_value=(None, TIMED_OUT))
        with mock.patch.object(config.grok_util, "chat_with_image_tool", chat), mock.patch.object(
            config.flux_util, "generate_image", generate
        ):
            response = self.client.post(
                "/api/grok", json={"message": "draw", "apiKey": "k"}, headers=self.headers
            )
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.json()["content"].endswith(TIMED_OUT))

    def test_vendor_error_is_a_200(self):
        chat = mock.AsyncMock(side_effect=GrokError("429 - slow down", status_code=429))
        with mock.patch.object(config.grok_util, "chat_with_image_tool", chat):
            response = self.client.post(
                "/api/grok", json={"message": "hi", "apiKey": "k"}, headers=self.headers
            )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"content": "Error: 429 - slow down"})


class TestFluxRoute(ApiTestCase):

    def test_requires_prompt_and_key(self):
        no_prompt = self.client.post("/api/flux", json={"apiKey": "k"}, headers=self.headers)
        self.assertEqual(no_prompt.status_code, 400)

        no_key = self.client.post("/api/flux", json={"prompt": "a fox"}, headers=self.headers)
        self.assertEqual(no_key.status_code, 401)
        self.assertEqual(no_key.json(), {"error": "No API key provided"})

    def test_image_url(self):
        generate = mock.AsyncMock(return_value=("https://img/fox.jpg", None))
        with mock.patch.object(config.flux_util, "generate_image", generate):
            response = self.client.post(
                "/api/flux", json={"prompt": "a fox", "apiKey": "k", "seed": 5}, headers=self.headers
            )
        self.assertEqual(response.json(), {"image_url": "https://img/fox.jpg"})
        generate.assert_awaited_once_with("a fox", api_key="k", seed=5)

    def test_timeout_is_a_200(self):
        generate = mock.AsyncMock(return_value=(None, TIMED_OUT))
        with mock.patch.object(config.flux_util, "generate_image", generate):
            response = self.client.post(
                "/api/flux", json={"prompt": "a fox", "apiKey": "k"}, headers=self.headers
            )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"error": TIMED_OUT})


class TestContentRoutes(ApiTestCase):

    def test_generate_dialog_falls_back_to_canned_lines(self):
        response = self.client.post(
            "/api/generate-dialog",
            json={
                "outgoingCharacter": {"name": "Kai", "series": "Saga"},
                "incomingCharacter": {"name": "Lyra"},
            },
            headers=self.headers,
        )
        body = response.json()
        self.assertIn("Lyra", body["outgoing"])
        self.assertIn("Kai", body["incoming"])

    def test_event_content(self):
        (character_id,) = self.seed_characters(1, prefix="Mira")
        body = self.client.post(
            "/api/event-content", json={"characterId": character_id}, headers=self.headers
        ).json()
        self.assertEqual(set(body), {"E1", "E2", "E3"})
        self.assertTrue(body["E1"].startswith("Mira 1:"))

    def test_event_content_errors(self):
        missing = self.client.post("/api/event-content", json={}, headers=self.headers)
        self.assertEqual(missing.status_code, 400)
        self.assertEqual(missing.json(), {"error": "Character ID is required"})

        unknown = self.client.post(
            "/api/event-content", json={"characterId": 404}, headers=self.headers
        )
        self.assertEqual(unknown.status_code, 404)


class TestSyncRoute(ApiTestCase):

    def test_invalid_direction(self):
        response = self.client.post("/api/sync", json={"direction": "sideways"}, headers=self.headers)
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {"error": "Invalid sync direction"})

    def test_from_sheets(self):
        result = {"success": True, "message": "Synced 4 characters from sheets"}
        with mock.patch.object(config.sheets_util, "sync_from_sheets", return_value=result):
            response = self.client.post(
                "/api/sync", json={"direction": "from_sheets"}, headers=self.headers
            )
        self.assertEqual(response.json(), result)

    def test_failure_is_a_500(self):
        failing = mock.Mock(side_effect=SheetsSyncError("No data found in sheets"))
        with mock.patch.object(config.sheets_util, "sync_to_sheets", failing):
            response = self.client.post(
                "/api/sync", json={"direction": "to_sheets"}, headers=self.headers
            )
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {"error": "Sync failed"})


class TestHealth(ApiTestCase):

    def test_health(self):
        self.assertEqual(self.client.get("/health").json(), {"status": "ok"})


if __name__ == "__main__":
    unittest.main()
