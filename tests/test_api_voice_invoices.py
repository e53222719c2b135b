import json
import unittest

from tests.support import ApiTestCase

ORDER_TRANSCRIPT = "2 Margherita Pizza und ein Caesar Salad für Anna an Tisch 5"


class VoiceApiTestCase(ApiTestCase):
    def preview(self, transcript, role="waiter"):
        response = self.client.post(
            "/api/voice-orders/parse", json={"transcript": transcript}, headers=self.headers(role)
        )
        self.assertEqual(response.status_code, 200, response.text)
        return response.json()

    def confirm(self, transcript, preview, role="waiter", **fields):
        """Send the preview's matched lines back the way the quick order screen does."""
        payload = {
            "transcript": transcript,
            "items": [
                {"menu_item_id": item["menu_item_id"], "quantity": item["quantity"], "notes": item["notes"]}
                for item in preview["items"]
                if item["matched"]
            ],
            "customer_name": preview["customer_name"],
            "table_number": preview["table_number"],
            "special_instructions": preview["special_instructions"],
            "unmatched_items": [item["name"] for item in preview["items"] if not item["matched"]],
        }
        payload.update(fields)
        return self.client.post("/api/voice-orders", json=payload, headers=self.headers(role))


class VoiceOrderTests(VoiceApiTestCase):
    def setUp(self):
        super().setUp()
        self.pizza = self.add_menu_item("Margherita Pizza", 18.99)
        self.salad = self.add_menu_item("Caesar Salad", 12.99, category="Salads")

    def test_parse_preview(self):
        body = self.preview(ORDER_TRANSCRIPT)
        self.assertEqual(body["customer_name"], "Anna")
        self.assertEqual(body["table_number"], 5)
        self.assertEqual(
            [(item["menu_item_name"], item["quantity"]) for item in body["items"]],
            [("Margherita Pizza", 2), ("Caesar Salad", 1)],
        )
        self.assertAlmostEqual(body["grand_total"], 50.97)
        self.assertAlmostEqual(body["total_vat"], round(50.97 * 0.19 / 1.19, 2))

    def test_confirm_creates_order_and_invoice(self):
        response = self.confirm(ORDER_TRANSCRIPT, self.preview(ORDER_TRANSCRIPT))
        self.assertEqual(response.status_code, 201, response.text)
        body = response.json()

        order = body["order"]
        self.assertEqual(order["customer_name"], "Anna")
        self.assertEqual(order["table_number"], 5)
        self.assertAlmostEqual(order["total"], 50.97)
        self.assertEqual(order["items"][0]["notes"], f'Sprachbestellung: "{ORDER_TRANSCRIPT}"')

        invoice = body["invoice"]
        self.assertRegex(invoice["invoice_number"], r"^RG-\d{8}-\d{4}$")
        self.assertAlmostEqual(invoice["grand_total"], 50.97)
        self.assertEqual(invoice["table_number"], 5)
        self.assertEqual(
            [(line["name"], line["quantity"]) for line in invoice["items"]],
            [("Margherita Pizza", 2), ("Caesar Salad", 1)],
        )
        self.assertEqual(body["unmatched_items"], [])

        listed = self.client.get("/api/orders", headers=self.headers("manager")).json()
        self.assertEqual(listed["total"], 1)

    def test_confirm_stores_the_previewed_lines(self):
        preview = self.preview(ORDER_TRANSCRIPT)
        # a second AI call would now read something else
        self.ai.script(json.dumps({
            "customerName": "Bernd",
            "tableNumber": 9,
            "items": [{"name": "Caesar Salad", "quantity": 3}],
            "specialInstructions": None,
        }))

        body = self.confirm(ORDER_TRANSCRIPT, preview).json()
        self.assertEqual(
            [(item["menu_item_name"], item["quantity"]) for item in body["order"]["items"]],
            [("Margherita Pizza", 2), ("Caesar Salad", 1)],
        )
        self.assertEqual(body["order"]["customer_name"], "Anna")
        self.assertAlmostEqual(body["invoice"]["grand_total"], preview["grand_total"])
        self.assertEqual(len(self.ai.sessions[self.user_id("waiter")]), 1)

    def test_unmatched_items_are_left_out(self):
        transcript = "Eine Pizza scharf und Champagner"
        self.ai.script(json.dumps({
            "customerName": None,
            "tableNumber": None,
            "items": [
                {"name": "margherita pizza", "quantity": 1, "notes": "extra scharf"},
                {"name": "Champagner", "quantity": 1, "unitPrice": 80},
            ],
            "specialInstructions": None,
        }))
        preview = self.preview(transcript, role="manager")
        self.assertEqual([item["matched"] for item in preview["items"]], [True, False])

        body = self.confirm(transcript, preview, role="manager").json()
        self.assertEqual(body["unmatched_items"], ["Champagner"])
        self.assertEqual(len(body["order"]["items"]), 1)
        self.assertEqual(body["order"]["items"][0]["notes"], "extra scharf")
        self.assertAlmostEqual(body["invoice"]["grand_total"], 18.99)
        self.assertRegex(body["order"]["customer_name"], r"^Gast \d{1,4}$")

    def test_special_instructions_become_item_notes(self):
        preview = self.preview(ORDER_TRANSCRIPT)
        body = self.confirm(ORDER_TRANSCRIPT, preview, special_instructions="Alles ohne Zwiebeln").json()
        self.assertEqual(body["order"]["notes"], "Alles ohne Zwiebeln")
        self.assertEqual(body["order"]["items"][1]["notes"], "Alles ohne Zwiebeln")
        self.assertEqual(body["invoice"]["notes"], "Alles ohne Zwiebeln")

    def test_request_overrides_parsed_details(self):
        preview = self.preview(ORDER_TRANSCRIPT)
        response = self.confirm(ORDER_TRANSCRIPT, preview, customer_name="Familie Weber", table_number=8)
        order = response.json()["order"]
        self.assertEqual(order["customer_name"], "Familie Weber")
        self.assertEqual(order["table_number"], 8)

    def test_confirm_prices_at_the_menu_and_rejects_unavailable_items(self):
        preview = self.preview(ORDER_TRANSCRIPT)
        self.client.post(f"/api/menu/{self.salad.id}/toggle", headers=self.headers("manager"))

        response = self.confirm(ORDER_TRANSCRIPT, preview)
        self.assertEqual(response.status_code, 400)
        self.assertIn("Caesar Salad", response.json()["detail"])

        response = self.confirm(ORDER_TRANSCRIPT, preview, items=[])
        self.assertEqual(response.status_code, 422)

    def test_nothing_recognised(self):
        response = self.client.post(
            "/api/voice-orders/parse", json={"transcript": "Drei Schnitzel bitte"}, headers=self.headers("waiter")
        )
        self.assertEqual(response.status_code, 400)

    def test_ai_failure_is_reported(self):
        self.ai.script(error_message="Too many requests. Please wait a moment and try again.")
        response = self.client.post(
            "/api/voice-orders/parse", json={"transcript": ORDER_TRANSCRIPT}, headers=self.headers("waiter")
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["detail"], "Too many requests. Please wait a moment and try again.")

    def test_staff_only(self):
        for role in ("customer", "kitchen", "bar"):
            response = self.client.post(
                "/api/voice-orders/parse", json={"transcript": ORDER_TRANSCRIPT}, headers=self.headers(role)
            )
            self.assertEqual(response.status_code, 403)
        response = self.client.post(
            "/api/voice-orders", json={"transcript": ORDER_TRANSCRIPT, "items": [{"menu_item_id": self.pizza.id}]},
            headers=self.headers("kitchen"),
        )
        self.assertEqual(response.status_code, 403)
        response = self.client.post(
            "/api/voice-orders/parse", json={"transcript": "  "}, headers=self.headers("waiter")
        )
        self.assertEqual(response.status_code, 422)


class InvoiceTests(VoiceApiTestCase):
    seed_floor = False

    def setUp(self):
        super().setUp()
        self.add_menu_item("Margherita Pizza", 18.99)
        transcript = "2 Margherita Pizza an Tisch 3"
        self.invoice = self.confirm(transcript, self.preview(transcript)).json()["invoice"]

    def test_html(self):
        response = self.client.post("/api/invoices/html", json=self.invoice, headers=self.headers("waiter"))
        self.assertEqual(response.status_code, 200)
        self.assertIn("text/html", response.headers["content-type"])
        self.assertIn(self.invoice["invoice_number"], response.text)
        self.assertIn("Gesamtbetrag: €37.98", response.text)

    def test_html_uses_saved_company_settings(self):
        self.client.put(
            "/api/company-settings",
            json={"name": "Trattoria Roma", "email": "kasse@roma.de"},
            headers=self.headers("manager"),
        )
        response = self.client.post("/api/invoices/html", json=self.invoice, headers=self.headers("waiter"))
        self.assertIn("Trattoria Roma", response.text)

    def test_email_goes_to_the_accountant(self):
        response = self.client.post(
            "/api/invoices/email", json={"invoice": self.invoice}, headers=self.headers("waiter")
        )
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.json()["success"])

        sent = self.notifier.sent[-1]
        self.assertEqual(sent["to"], "buchhaltung@kanzlei.de")
        self.assertEqual(sent["cc"], "info@meinbetrieb.de")
        self.assertEqual(sent["subject"], f"Neue Rechnung {self.invoice['invoice_number']} - RestaurantOS GmbH")
        self.assertEqual(sent["attachments"], [f"Rechnung-{self.invoice['invoice_number']}.pdf"])

    def test_email_to_custom_recipient(self):
        self.client.post(
            "/api/invoices/email",
            json={"invoice": self.invoice, "to_email": "steuer@example.com"},
            headers=self.headers("manager"),
        )
        self.assertEqual(self.notifier.sent[-1]["to"], "steuer@example.com")

    def test_datev_download(self):
        response = self.client.post(
            "/api/invoices/datev", json={"invoices": [self.invoice]}, headers=self.headers("manager")
        )
        self.assertEqual(response.status_code, 200)
        date_part = self.invoice["date"].replace(".", "")
        self.assertIn(f'DATEV-Export-{date_part}.csv', response.headers["content-disposition"])

        text = response.content.decode("utf-8")
        self.assertTrue(text.startswith("\ufeffUmsatz (ohne Soll/Haben-Kz);"))
        lines = text.split("\n")
        self.assertEqual(len(lines), 3)
        self.assertTrue(lines[1].startswith("31,92;S;EUR;"))
        self.assertTrue(lines[2].startswith("6,06;S;EUR;"))

    def test_invalid_invoice(self):
        broken = dict(self.invoice, date="2026-10-19")
        response = self.client.post("/api/invoices/html", json=broken, headers=self.headers("waiter"))
        self.assertEqual(response.status_code, 422)
        response = self.client.post("/api/invoices/datev", json={"invoices": []}, headers=self.headers("waiter"))
        self.assertEqual(response.status_code, 422)


if __name__ == "__main__":
    unittest.main()
