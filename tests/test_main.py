import unittest

from fastapi.testclient import TestClient

from busplan.main import app


class TestMain(unittest.TestCase):
    def test_app_metadata(self):
        self.assertEqual(app.title, "Bus After Class")

    def test_health(self):
        resp = TestClient(app).get("/health")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), {"status": "ok"})


if __name__ == "__main__":
    unittest.main()
