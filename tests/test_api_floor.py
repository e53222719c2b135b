import unittest

from tests.support import ApiTestCase


class TableTests(ApiTestCase):
    def tables(self, role="waiter"):
        response = self.client.get("/api/tables", headers=self.headers(role))
        self.assertEqual(response.status_code, 200)
        return {table["number"]: table for table in response.json()}

    def test_default_floor_plan(self):
        tables = self.tables()
        self.assertEqual(sorted(tables), list(range(1, 9)))
        self.assertEqual(tables[4]["status"], "reserved")
        self.assertEqual(tables[3]["shape"], "rectangular")
        self.assertEqual(len(tables[3]["seat_positions"]), 6)
        self.assertEqual(tables[3]["seat_positions"][0]["seat"], 1)

    def test_tables_need_a_signed_in_user(self):
        self.assertEqual(self.client.get("/api/tables").status_code, 401)
        self.assertEqual(self.client.get("/api/tables", headers=self.headers("customer")).status_code, 200)

    def test_active_order_marks_table_occupied(self):
        pizza = self.add_menu_item("Margherita Pizza", 18.99)
        order = self.client.post(
            "/api/orders",
            json={"items": [{"menu_item_id": pizza.id}], "table_number": 3},
            headers=self.headers("waiter"),
        ).json()

        table = self.tables()[3]
        self.assertEqual(table["status"], "occupied")
        self.assertEqual(table["stored_status"], "available")
        self.assertEqual(table["active_order_ids"], [order["id"]])

        self.client.patch(
            f"/api/orders/{order['id']}/status", json={"status": "served"}, headers=self.headers("waiter")
        )
        table = self.tables()[3]
        self.assertEqual(table["status"], "available")
        self.assertEqual(table["active_order_ids"], [])

    def test_waiter_changes_status_only(self):
        table = self.tables()[1]
        response = self.client.patch(
            f"/api/tables/{table['id']}", json={"status": "cleaning"}, headers=self.headers("waiter")
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["status"], "cleaning")

        response = self.client.patch(
            f"/api/tables/{table['id']}", json={"seats": 6}, headers=self.headers("waiter")
        )
        self.assertEqual(response.status_code, 403)

    def test_manager_edits_layout(self):
        table = self.tables("manager")[8]
        response = self.client.patch(
            f"/api/tables/{table['id']}",
            json={"seats": 2, "shape": "round", "x": 640, "y": 480},
            headers=self.headers("manager"),
        )
        body = response.json()
        self.assertEqual((body["x"], body["y"]), (640, 480))
        self.assertEqual(len(body["seat_positions"]), 2)

        response = self.client.patch(
            f"/api/tables/{table['id']}", json={"number": 2}, headers=self.headers("manager")
        )
        self.assertEqual(response.status_code, 400)

    def test_kitchen_cannot_edit_tables(self):
        table = self.tables()[1]
        response = self.client.patch(
            f"/api/tables/{table['id']}", json={"status": "reserved"}, headers=self.headers("kitchen")
        )
        self.assertEqual(response.status_code, 403)
        self.assertEqual(self.client.get("/api/tables/missing", headers=self.headers("waiter")).status_code, 404)


class DashboardTests(ApiTestCase):
    def setUp(self):
        super().setUp()
        self.pizza = self.add_menu_item("Margherita Pizza", 18.99)
        self.gin_tonic = self.add_menu_item(
            "Gin Tonic", 8.5, category="Cocktail",
            required_inventory=["Gin", "Tonic Water", "Limes", "Ice"],
        )
        self.mixed = self.client.post(
            "/api/orders",
            json={
                "items": [{"menu_item_id": self.pizza.id}, {"menu_item_id": self.gin_tonic.id}],
                "table_number": 2,
            },
            headers=self.headers("waiter"),
        ).json()
        self.drinks_only = self.client.post(
            "/api/orders",
            json={"items": [{"menu_item_id": self.gin_tonic.id}]},
            headers=self.headers("customer"),
        ).json()

    def test_kitchen_sees_food_only(self):
        response = self.client.get("/api/dashboard/kitchen", headers=self.headers("kitchen"))
        active = response.json()["active_orders"]
        self.assertEqual([order["id"] for order in active], [self.mixed["id"]])
        self.assertEqual([item["menu_item_name"] for item in active[0]["items"]], ["Margherita Pizza"])

    def test_bar_sees_drinks_and_blocked_ones(self):
        body = self.client.get("/api/dashboard/bar", headers=self.headers("bar")).json()
        self.assertEqual(len(body["active_drinks"]), 2)
        self.assertTrue(all(drink["can_prepare"] for drink in body["active_drinks"]))
        self.assertEqual(
            [item["name"] for item in body["low_stock"]],
            ["Cranberry Juice", "Gin", "Limes", "Tequila"],
        )

        gin = next(item for item in body["low_stock"] if item["name"] == "Gin")
        self.client.patch(f"/api/inventory/{gin['id']}", json={"quantity": 0}, headers=self.headers("bar"))

        drinks = self.client.get("/api/dashboard/bar", headers=self.headers("bar")).json()["active_drinks"]
        self.assertFalse(drinks[0]["can_prepare"])
        self.assertEqual(drinks[0]["missing_critical"], ["Gin"])

    def test_ready_drinks_move_to_ready_list(self):
        item_id = self.drinks_only["items"][0]["id"]
        self.client.patch(
            f"/api/orders/{self.drinks_only['id']}/items/{item_id}/status",
            json={"status": "ready"},
            headers=self.headers("bar"),
        )
        body = self.client.get("/api/dashboard/bar", headers=self.headers("bar")).json()
        self.assertEqual([drink["item"]["id"] for drink in body["ready_drinks"]], [item_id])
        self.assertEqual(len(body["active_drinks"]), 1)

    def test_waiter_sees_own_orders_and_tables(self):
        body = self.client.get("/api/dashboard/waiter", headers=self.headers("waiter")).json()
        self.assertEqual([order["id"] for order in body["orders"]], [self.mixed["id"]])
        self.assertEqual(len(body["tables"]), 8)

    def test_customer_dashboard(self):
        body = self.client.get("/api/dashboard/customer", headers=self.headers("customer")).json()
        self.assertEqual([order["id"] for order in body["orders"]], [self.drinks_only["id"]])
        self.assertEqual({item["name"] for item in body["menu"]}, {"Margherita Pizza", "Gin Tonic"})

    def test_manager_dashboard(self):
        body = self.client.get("/api/dashboard/manager", headers=self.headers("manager")).json()
        self.assertEqual(body["today_order_count"], 2)
        self.assertAlmostEqual(body["today_revenue"], 18.99 + 8.5 + 8.5)
        self.assertEqual(body["status_counts"], {
            "pending": 2, "preparing": 0, "ready": 0, "served": 0, "completed": 0,
        })

    def test_dashboard_for_my_role(self):
        body = self.client.get("/api/dashboard", headers=self.headers("bar")).json()
        self.assertEqual(body["role"], "bar")
        self.assertIn("active_drinks", body["dashboard"])

    def test_role_guards(self):
        self.assertEqual(self.client.get("/api/dashboard/kitchen", headers=self.headers("customer")).status_code, 403)
        self.assertEqual(self.client.get("/api/dashboard/manager", headers=self.headers("waiter")).status_code, 403)


class InventoryTests(ApiTestCase):
    def setUp(self):
        super().setUp()
        self.spritz = self.add_menu_item(
            "Aperol Spritz", 7.5, category="Cocktail", required_inventory=["Aperol", "Ice"]
        )

    def menu_available(self):
        return self.client.get(f"/api/menu/{self.spritz.id}").json()["available"]

    def test_stock_changes_drive_menu_availability(self):
        bar = self.headers("bar")
        created = self.client.post("/api/inventory", json={"name": "Aperol", "quantity": 0}, headers=bar)
        self.assertEqual(created.status_code, 201, created.text)
        self.assertTrue(created.json()["is_critical"])
        self.assertFalse(self.menu_available())

        item_id = created.json()["id"]
        self.client.patch(f"/api/inventory/{item_id}", json={"quantity": 6}, headers=bar)
        self.assertTrue(self.menu_available())

        self.client.patch(f"/api/inventory/{item_id}", json={"quantity": 0}, headers=bar)
        self.assertFalse(self.menu_available())

        self.client.patch(f"/api/inventory/{item_id}", json={"is_critical": False}, headers=bar)
        self.assertTrue(self.menu_available())

    def test_deleting_blocking_stock_frees_the_menu_item(self):
        bar = self.headers("bar")
        item_id = self.client.post("/api/inventory", json={"name": "Aperol", "quantity": 0}, headers=bar).json()["id"]
        self.assertFalse(self.menu_available())

        response = self.client.delete(f"/api/inventory/{item_id}", headers=bar)
        self.assertEqual(response.status_code, 200)
        self.assertTrue(self.menu_available())

    def test_garnish_defaults_to_non_critical(self):
        response = self.client.post(
            "/api/inventory", json={"name": "Straw", "quantity": 100}, headers=self.headers("manager")
        )
        self.assertFalse(response.json()["is_critical"])

    def test_low_stock_list(self):
        low = self.client.get("/api/inventory/low-stock", headers=self.headers("bar")).json()
        self.assertIn("Tequila", [item["name"] for item in low])
        self.assertTrue(all(item["is_low_stock"] for item in low))

    def test_rejections(self):
        bar = self.headers("bar")
        duplicate = self.client.post("/api/inventory", json={"name": "Gin", "quantity": 1}, headers=bar)
        self.assertEqual(duplicate.status_code, 400)

        gin = next(
            item for item in self.client.get("/api/inventory", headers=bar).json() if item["name"] == "Gin"
        )
        negative = self.client.patch(f"/api/inventory/{gin['id']}", json={"quantity": -1}, headers=bar)
        self.assertEqual(negative.status_code, 400)

        renamed = self.client.patch(f"/api/inventory/{gin['id']}", json={"name": "Rum"}, headers=bar)
        self.assertEqual(renamed.status_code, 400)

        self.assertEqual(self.client.get("/api/inventory", headers=self.headers("waiter")).status_code, 403)
        self.assertEqual(self.client.get("/api/inventory/missing", headers=bar).status_code, 404)


if __name__ == "__main__":
    unittest.main()
