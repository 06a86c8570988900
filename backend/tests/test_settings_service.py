import unittest
from flask import Flask

from crm.extensions import db
from crm.models import Setting
from crm.services import settings_service
from crm.services.settings_service import SettingsError, SettingsNotFoundError


class SettingsServiceTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.app = Flask(__name__)
        cls.app.config.update(
            SECRET_KEY="test",
            SQLALCHEMY_DATABASE_URI="sqlite:///:memory:",
            SQLALCHEMY_TRACK_MODIFICATIONS=False,
            TESTING=True,
        )
        db.init_app(cls.app)
        cls.ctx = cls.app.app_context()
        cls.ctx.push()
        from crm import models  # noqa: F401
        db.create_all()

    @classmethod
    def tearDownClass(cls):
        db.session.remove()
        db.drop_all()
        cls.ctx.pop()

    def setUp(self):
        db.session.query(Setting).delete()
        db.session.commit()

    def test_values_round_trip_as_json(self):
        settings_service.set_setting("company.name", "Acme Realty")
        settings_service.set_setting("reminders", {"days": [1, 7], "enabled": True})
        settings_service.set_setting("tax_rate", 0.16)

        self.assertEqual(settings_service.get_setting("company.name"), "Acme Realty")
        self.assertEqual(settings_service.get_setting("reminders"), {"days": [1, 7], "enabled": True})
        self.assertEqual(settings_service.get_setting("tax_rate"), 0.16)

    def test_get_all_is_a_flat_mapping(self):
        settings_service.set_setting("b", 2)
        settings_service.set_setting("a", "one")

        self.assertEqual(list(settings_service.get_all_settings()), ["a", "b"])
        self.assertEqual(settings_service.get_all_settings(), {"a": "one", "b": 2})

    def test_upsert_overwrites_existing_key(self):
        settings_service.set_setting("currency", "USD")
        settings_service.set_setting(" currency ", "PKR")

        self.assertEqual(db.session.query(Setting).count(), 1)
        self.assertEqual(settings_service.get_setting("currency"), "PKR")

    def test_upsert_does_not_commit(self):
        settings_service.upsert_setting("draft", True)
        db.session.rollback()

        with self.assertRaises(SettingsNotFoundError):
            settings_service.get_setting("draft")

    def test_blank_key_rejected(self):
        with self.assertRaises(SettingsError):
            settings_service.set_setting("   ", 1)

    def test_legacy_plain_text_value_is_returned_as_is(self):
        db.session.add(Setting(key="theme", value="dark"))
        db.session.commit()

        self.assertEqual(settings_service.get_all_settings(), {"theme": "dark"})


if __name__ == "__main__":
    unittest.main()
