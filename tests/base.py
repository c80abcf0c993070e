import os
import shutil
import tempfile
import unittest

from checkin_service.app import create_app
from checkin_service.extensions import BLOCKLIST, db

ADMIN_TOKEN = "test-admin-secret"


def scripted_choice(codes):
    """A stand-in for secrets.choice that spells out `codes` one character at a time."""
    chars = iter("".join(codes))
    return lambda alphabet: next(chars)


class CheckinTestCase(unittest.TestCase):
    # Extra app config for a test class
    config_overrides = {}

    def database_uri(self):
        return "sqlite://"

    def setUp(self):
        overrides = {
            "TESTING": True,
            "SQLALCHEMY_DATABASE_URI": self.database_uri(),
            "ADMIN_TOKEN": ADMIN_TOKEN,
            "JWT_SECRET_KEY": "test-jwt-secret-key-that-is-long-enough",
            "CORS_ORIGIN": "https://checkin.example.com",
            "CODE_LENGTH": 6,
            "MAX_BATCH_SIZE": 100,
            "ISSUE_MAX_ATTEMPTS": 10,
            "MAX_ENTRIES_PER_CODE": 0,
        }
        overrides.update(self.config_overrides)
        self.app = create_app(overrides)
        self.client = self.app.test_client()
        self.admin_headers = {"Authorization": f"Bearer {ADMIN_TOKEN}"}

    def tearDown(self):
        with self.app.app_context():
            db.session.remove()
            db.drop_all()
            db.engine.dispose()
        BLOCKLIST.clear()

    # --- helpers ---------------------------------------------------------

    def generate(self, count=1, **extra):
        resp = self.client.post(
            "/admin/generate-codes",
            json={"count": count, **extra},
            headers=self.admin_headers,
        )
        self.assertEqual(resp.status_code, 201, resp.get_json())
        return resp.get_json()["codes"]

    def register(self, code, name="Ada Lovelace", email=None):
        body = {"code": code, "name": name}
        if email is not None:
            body["email"] = email
        return self.client.post("/register", json=body)


class FileDatabaseTestCase(CheckinTestCase):
    """Backs the app with an SQLite file so several threads share one database."""

    def database_uri(self):
        self.tmpdir = tempfile.mkdtemp()
        return "sqlite:///" + os.path.join(self.tmpdir, "checkin.db")

    def tearDown(self):
        super().tearDown()
        shutil.rmtree(self.tmpdir, ignore_errors=True)
