import unittest

from tests.support import ApiTestCase


class ChatTests(ApiTestCase):
    seed_floor = False

    def test_chat_stores_question_and_answer(self):
        self.ai.script("Heute sind 3 Bestellungen offen.")
        response = self.client.post(
            "/api/assistant/chat", json={"message": "Wie viele Bestellungen sind offen?"},
            headers=self.headers("manager"),
        )
        self.assertEqual(response.json(), {"success": True, "answer": "Heute sind 3 Bestellungen offen.", "error": None})

        history = self.client.get("/api/assistant/messages", headers=self.headers("manager")).json()
        self.assertEqual([message["type"] for message in history], ["user", "assistant"])
        self.assertEqual(history[1]["content"], "Heute sind 3 Bestellungen offen.")
        self.assertEqual(self.ai.sessions[self.user_id("manager")], ["Wie viele Bestellungen sind offen?"])

    def test_failed_reply_keeps_only_the_question(self):
        self.ai.script(error_message="AI backend unavailable. Please try again in a moment.")
        response = self.client.post("/api/assistant/chat", json={"message": "Hallo"}, headers=self.headers("waiter"))
        body = response.json()
        self.assertFalse(body["success"])
        self.assertEqual(body["error"], "AI backend unavailable. Please try again in a moment.")

        history = self.client.get("/api/assistant/messages", headers=self.headers("waiter")).json()
        self.assertEqual([message["type"] for message in history], ["user"])

    def test_history_is_per_user(self):
        self.client.post("/api/assistant/chat", json={"message": "Hallo"}, headers=self.headers("waiter"))
        history = self.client.get("/api/assistant/messages", headers=self.headers("bar")).json()
        self.assertEqual(history, [])

    def test_clear_and_logout_drop_history(self):
        manager = self.headers("manager")
        self.client.post("/api/assistant/chat", json={"message": "Hallo"}, headers=manager)

        response = self.client.post("/api/assistant/clear", headers=manager)
        self.assertTrue(response.json()["success"])
        self.assertEqual(self.client.get("/api/assistant/messages", headers=manager).json(), [])
        self.assertNotIn(self.user_id("manager"), self.ai.sessions)

        self.client.post("/api/assistant/chat", json={"message": "Noch einmal"}, headers=manager)
        self.client.post("/api/auth/logout", headers=manager)
        self.assertEqual(self.client.get("/api/assistant/messages", headers=manager).json(), [])

    def test_empty_message(self):
        response = self.client.post("/api/assistant/chat", json={"message": "  "}, headers=self.headers("manager"))
        self.assertEqual(response.status_code, 422)

    def test_natural_language_query(self):
        response = self.client.post(
            "/api/assistant/query", json={"message": "Umsatz gestern?"}, headers=self.headers("manager")
        )
        body = response.json()
        self.assertTrue(body["success"])
        self.assertEqual(body["result"], [])
        self.assertIn("Umsatz gestern?", body["answer"])


class InsightTests(ApiTestCase):
    def setUp(self):
        super().setUp()
        self.pizza = self.add_menu_item("Margherita Pizza", 18.99)
        self.add_menu_item("Tiramisu", 7.99, category="Desserts")
        self.add_menu_item("Espresso", 2.5, category="Hot Drinks")
        self.add_menu_item("Lobster", 49.0, available=False)

    def insight(self, name, **params):
        response = self.client.get(f"/api/assistant/insights/{name}", params=params, headers=self.headers("manager"))
        self.assertEqual(response.status_code, 200, response.text)
        return response.json()

    def test_cheapest_and_most_expensive_available(self):
        self.assertEqual(self.insight("cheapest")["data"]["name"], "Espresso")
        self.assertEqual(self.insight("most-expensive")["data"]["name"], "Margherita Pizza")

    def test_by_category(self):
        body = self.insight("by-category", category="dessert")
        self.assertEqual([item["name"] for item in body["data"]], ["Tiramisu"])

        body = self.insight("by-category")
        self.assertFalse(body["success"])
        self.assertEqual(body["error"], "A category is required")

    def test_pending_orders_and_revenue(self):
        order = self.client.post(
            "/api/orders", json={"items": [{"menu_item_id": self.pizza.id}]}, headers=self.headers("waiter")
        ).json()
        self.client.post(
            "/api/orders", json={"items": [{"menu_item_id": self.pizza.id}]}, headers=self.headers("waiter")
        )
        self.client.patch(f"/api/orders/{order['id']}/status", json={"status": "completed"}, headers=self.headers("manager"))

        self.assertEqual(self.insight("pending-orders")["data"], {"count": 1})
        revenue = self.insight("today-revenue")["data"]
        self.assertEqual(revenue["order_count"], 1)
        self.assertAlmostEqual(revenue["revenue"], 18.99)

    def test_categories(self):
        self.assertEqual(
            sorted(self.insight("categories")["data"]),
            ["Desserts", "Hot Drinks", "Main Course"],
        )

    def test_empty_menu(self):
        for item in self.client.get("/api/menu", params={"available_only": True}).json():
            self.client.post(f"/api/menu/{item['id']}/toggle", headers=self.headers("manager"))
        body = self.insight("cheapest")
        self.assertFalse(body["success"])
        self.assertEqual(body["error"], "No menu items found")

    def test_unknown_insight(self):
        response = self.client.get("/api/assistant/insights/best-waiter", headers=self.headers("manager"))
        self.assertEqual(response.status_code, 404)


class CompanySettingsApiTests(ApiTestCase):
    seed_floor = False

    def test_read_and_update(self):
        body = self.client.get("/api/company-settings", headers=self.headers("waiter")).json()
        self.assertEqual(body["name"], "RestaurantOS GmbH")

        response = self.client.put(
            "/api/company-settings", json=dict(body, name="Trattoria Roma"), headers=self.headers("manager")
        )
        self.assertEqual(response.status_code, 200)
        body = self.client.get("/api/company-settings", headers=self.headers("waiter")).json()
        self.assertEqual(body["name"], "Trattoria Roma")

    def test_only_managers_update(self):
        response = self.client.put("/api/company-settings", json={"name": "X"}, headers=self.headers("waiter"))
        self.assertEqual(response.status_code, 403)

    def test_validation(self):
        response = self.client.put("/api/company-settings", json={"email": "no-at-sign"}, headers=self.headers("manager"))
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["detail"], "A valid email address is required")


class HealthTests(ApiTestCase):
    seed_floor = False

    def test_health_in_development(self):
        body = self.client.get("/health").json()
        self.assertEqual(body["status"], "operational")
        self.assertEqual(body["database"], "healthy")
        self.assertEqual(body["redis"], "healthy (memory)")

    def test_root(self):
        response = self.client.get("/")
        self.assertEqual(response.status_code, 200)


if __name__ == "__main__":
    unittest.main()
