import unittest
from unittest.mock import MagicMock

from sqlalchemy.orm import Session

from contacts_api import crud, models, schemas


class TestCRUD(unittest.TestCase):

    def setUp(self):
        self.mock_db = MagicMock(Session)

    def test_get_user_by_email(self):
        email = "test@example.com"
        mock_user = models.User(email=email, password="hashed_password")
        self.mock_db.query().filter().first.return_value = mock_user

        user = crud.get_user_by_email(self.mock_db, email)
        self.assertIsNotNone(user)
        self.assertEqual(user.email, email)

    def test_create_user(self):
        user_data = schemas.UserCreate(email="newuser@example.com", password="password")
        self.mock_db.query().filter().first.return_value = None

        created_user = crud.create_user(
            self.mock_db,
            user_data,
            hashed_password="hashed_password",
            verification_token="token",
            avatar_url="https://www.gravatar.com/avatar/x",
        )

        self.assertEqual(created_user.email, user_data.email)
        self.assertEqual(created_user.password, "hashed_password")
        self.assertEqual(created_user.subscription, models.Subscription.starter)
        self.assertFalse(created_user.verify)
        self.assertEqual(created_user.verification_token, "token")
        self.mock_db.add.assert_called_once()
        self.mock_db.commit.assert_called_once()

    def test_create_user_duplicate_email(self):
        user_data = schemas.UserCreate(email="taken@example.com", password="password")
        self.mock_db.query().filter().first.return_value = models.User(email=user_data.email, password="x")

        with self.assertRaises(ValueError):
            crud.create_user(self.mock_db, user_data, "hashed_password", "token", "")
        self.mock_db.add.assert_not_called()

    def test_create_contact(self):
        contact_data = schemas.ContactCreate(name="John Doe", email="john@example.com", phone="123456789")
        user_id = 1

        created_contact = crud.create_contact(self.mock_db, contact_data, user_id)

        self.assertEqual(created_contact.name, contact_data.name)
        self.assertEqual(created_contact.owner_id, user_id)
        self.mock_db.add.assert_called_once()
        self.mock_db.commit.assert_called_once()

    def test_update_contact_missing(self):
        self.mock_db.query().filter().first.return_value = None
        contact_data = schemas.ContactUpdate(name="John Doe", email="john@example.com", phone="123456789")

        self.assertIsNone(crud.update_contact(self.mock_db, 42, contact_data))
        self.mock_db.commit.assert_not_called()

    def test_update_favorite(self):
        contact = models.Contact(name="John Doe", email="john@example.com", phone="123456789", favorite=False)
        self.mock_db.query().filter().first.return_value = contact

        updated = crud.update_favorite(self.mock_db, 1, True)

        self.assertTrue(updated.favorite)
        self.mock_db.commit.assert_called_once()

    def test_delete_contact_missing(self):
        self.mock_db.query().filter().first.return_value = None

        self.assertIsNone(crud.delete_contact(self.mock_db, 42))
        self.mock_db.delete.assert_not_called()

    def test_update_subscription_missing_user(self):
        self.mock_db.query().filter().first.return_value = None

        self.assertIsNone(crud.update_subscription(self.mock_db, 42, models.Subscription.pro))


if __name__ == "__main__":
    unittest.main()
