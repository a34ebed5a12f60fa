import unittest

from fastapi.testclient import TestClient

from catalog.app import create_app
from catalog.config import Settings

WIDGET = {"title": "Widget", "price": 9.99, "description": "d", "image": "i.png"}


class CatalogApiContract:
    """Scenarios every backend must satisfy. Mixed into TestCase subclasses."""

    def make_settings(self) -> Settings:
        raise NotImplementedError

    def setUp(self):
        self.app = create_app(self.make_settings())
        self.client = TestClient(self.app)

    def test_create_and_get_product(self):
        response = self.client.post("/Products/", json=WIDGET)
        self.assertEqual(response.status_code, 200)
        created = response.json()
        self.assertIsInstance(created["id"], int)
        self.assertEqual(created["title"], "Widget")
        self.assertEqual(created["price"], 9.99)
        self.assertEqual(created["discounted_price"], 0)
        self.assertEqual(created["category_ids"], [])

        fetched = self.client.get(f"/Products/{created['id']}")
        self.assertEqual(fetched.status_code, 200)
        self.assertEqual(fetched.json(), created)

    def test_price_round_trips_exactly(self):
        payload = {**WIDGET, "price": 1.005, "discounted_price": 9.999}
        created = self.client.post("/Products/", json=payload).json()
        self.assertEqual(created["price"], 1.005)
        fetched = self.client.get(f"/Products/{created['id']}").json()
        self.assertEqual(fetched["price"], 1.005)
        self.assertEqual(fetched["discounted_price"], 9.999)
        listed = self.client.get("/Products/").json()
        self.assertEqual(listed[0]["price"], 1.005)

    def test_ids_beyond_integer_range(self):
        huge = 2**63
        self.assertEqual(self.client.get(f"/Products/{huge}").status_code, 404)
        response = self.client.delete(f"/Categories/{huge}")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["status"], "ok")
        self.assertEqual(
            self.client.post("/Categories/", json={"id": huge, "name": "x"}).status_code,
            422,
        )
        self.assertEqual(
            self.client.post(
                "/Products/", json={**WIDGET, "category_ids": [huge]}
            ).status_code,
            422,
        )

    def test_supplied_id_is_used(self):
        response = self.client.post("/Categories/", json={"id": 7, "name": "Tools"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["id"], 7)
        self.assertEqual(self.client.get("/Categories/7").json()["name"], "Tools")

    def test_get_missing_returns_404(self):
        response = self.client.get("/Products/12345")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()["detail"], "Product not found")

    def test_delete_never_created_category_is_ok(self):
        response = self.client.delete("/Categories/999")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["status"], "ok")

    def test_delete_then_get_returns_404(self):
        created = self.client.post("/Categories/", json={"name": "Tools"}).json()
        self.assertEqual(
            self.client.delete(f"/Categories/{created['id']}").status_code, 200
        )
        self.assertEqual(self.client.get(f"/Categories/{created['id']}").status_code, 404)

    def test_list_returns_every_entity(self):
        for name in ["a", "b", "c"]:
            self.client.post("/Categories/", json={"name": name})
        response = self.client.get("/Categories/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual({c["name"] for c in response.json()}, {"a", "b", "c"})

    def test_missing_required_field_is_rejected(self):
        payload = dict(WIDGET)
        del payload["title"]
        self.assertEqual(self.client.post("/Products/", json=payload).status_code, 422)

    def test_empty_required_field_is_rejected(self):
        response = self.client.post("/Categories/", json={"name": ""})
        self.assertEqual(response.status_code, 422)

    def test_non_integer_id_is_rejected(self):
        self.assertEqual(self.client.get("/Products/abc").status_code, 422)

    def test_error_endpoint_returns_500(self):
        client = TestClient(self.app, raise_server_exceptions=False)
        response = client.get("/error")
        self.assertEqual(response.status_code, 500)


class InMemoryApiTests(CatalogApiContract, unittest.TestCase):
    def make_settings(self) -> Settings:
        return Settings(use_in_memory_backends=True)

    def test_duplicate_id_overwrites(self):
        self.client.post("/Categories/", json={"id": 1, "name": "Tools"})
        response = self.client.post("/Categories/", json={"id": 1, "name": "Garden"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(self.client.get("/Categories/1").json()["name"], "Garden")


class SqlApiTests(CatalogApiContract, unittest.TestCase):
    def make_settings(self) -> Settings:
        return Settings(
            use_in_memory_backends=False,
            database_url="sqlite+pysqlite:///:memory:",
        )

    def tearDown(self):
        self.app.state.repositories.context.dispose()

    def test_duplicate_id_conflicts(self):
        self.client.post("/Categories/", json={"id": 1, "name": "Tools"})
        response = self.client.post("/Categories/", json={"id": 1, "name": "Garden"})
        self.assertEqual(response.status_code, 409)
        self.assertEqual(self.client.get("/Categories/1").json()["name"], "Tools")

    def test_product_categories_are_linked(self):
        category = self.client.post("/Categories/", json={"name": "Tools"}).json()
        product = self.client.post(
            "/Products/", json={**WIDGET, "category_ids": [category["id"]]}
        ).json()
        self.assertEqual(product["category_ids"], [category["id"]])

        fetched = self.client.get(f"/Categories/{category['id']}").json()
        self.assertEqual(fetched["product_ids"], [product["id"]])

        self.client.delete(f"/Categories/{category['id']}")
        self.assertEqual(
            self.client.get(f"/Products/{product['id']}").json()["category_ids"], []
        )


class AppConfigurationTests(unittest.TestCase):
    def test_docs_served_in_development(self):
        app = create_app(Settings(use_in_memory_backends=True, environment="development"))
        self.assertEqual(TestClient(app).get("/openapi.json").status_code, 200)

    def test_docs_hidden_outside_development(self):
        app = create_app(Settings(use_in_memory_backends=True, environment="production"))
        client = TestClient(app)
        self.assertEqual(client.get("/docs").status_code, 404)
        self.assertEqual(client.get("/openapi.json").status_code, 404)

    def test_request_logging_middleware(self):
        app = create_app(Settings(use_in_memory_backends=True, log_requests=True))
        client = TestClient(app, raise_server_exceptions=False)
        with self.assertLogs("catalog.requests", level="INFO") as logs:
            client.get("/Products/", params={"q": "x"})
        self.assertIn("Path: /Products/, QueryString: q=x", logs.output[0])

        with self.assertLogs("catalog.requests", level="ERROR"):
            self.assertEqual(client.get("/error").status_code, 500)


if __name__ == "__main__":
    unittest.main()
