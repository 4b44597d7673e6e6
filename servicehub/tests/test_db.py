import unittest

from servicehub.db import (
    AppointmentRecord,
    InMemoryDbClient,
    MetaAccountRecord,
    OAuthStateRecord,
    ProfileRecord,
    ProjectRecord,
    SocialPostRecord,
    SqlDbClient,
)
from servicehub.types import (
    AppointmentStatus,
    ApprovalStatus,
    ProjectStatus,
    SocialSource,
    UserType,
)


class SqlDbClientTests(unittest.TestCase):
    """
    Uses SQLite via SQLAlchemy URL for fast/local testing of the SQL client logic.
    """

    def setUp(self):
        self.db = SqlDbClient("sqlite+pysqlite:///:memory:")

    def test_requires_url(self):
        with self.assertRaises(ValueError):
            SqlDbClient("")

    def test_profile_lookup_and_patch(self):
        profile = self.db.create_profile(
            ProfileRecord(
                user_id="bob",
                name="Bob",
                user_type=UserType.BUSINESS,
                services=["mowing", "edging"],
            )
        )
        fetched = self.db.get_profile_by_user("bob")
        self.assertEqual(fetched.id, profile.id)
        self.assertEqual(fetched.user_type, UserType.BUSINESS)
        self.assertEqual(fetched.services, ["mowing", "edging"])
        self.assertIsNone(self.db.get_profile_by_user("nobody"))

        updated = self.db.update_profile(profile.id, {"phone": "555-0100"})
        self.assertEqual(updated.phone, "555-0100")
        self.assertEqual(updated.name, "Bob")

        with self.assertRaises(ValueError):
            self.db.update_profile(profile.id, {"nickname": "B"})
        self.assertIsNone(self.db.update_profile("missing", {"phone": "1"}))

    def test_one_profile_per_user(self):
        first = self.db.create_profile(
            ProfileRecord(user_id="bob", name="Bob", user_type=UserType.BUSINESS)
        )
        self.assertIsNotNone(first)
        duplicate = self.db.create_profile(
            ProfileRecord(user_id="bob", name="Other Bob", user_type=UserType.CLIENT)
        )
        self.assertIsNone(duplicate)
        self.assertEqual(self.db.get_profile_by_user("bob").name, "Bob")

    def test_book_only_available_slot(self):
        slot = self.db.create_appointment(
            AppointmentRecord(business_owner_id="bob", start_date_time=1000, end_date_time=2000)
        )
        booked = self.db.book_appointment(slot.id, "ann", "gate code 12")
        self.assertEqual(booked.status, AppointmentStatus.BOOKED)
        self.assertEqual(booked.client_id, "ann")

        # A second booking against the same slot changes nothing.
        self.assertIsNone(self.db.book_appointment(slot.id, "cat", None))
        stored = self.db.get_appointment(slot.id)
        self.assertEqual(stored.client_id, "ann")
        self.assertEqual(stored.notes, "gate code 12")
        self.assertIsNone(self.db.book_appointment("missing", "cat", None))

    def test_list_profiles_by_type(self):
        self.db.create_profile(
            ProfileRecord(user_id="bob", name="Bob", user_type=UserType.BUSINESS)
        )
        self.db.create_profile(
            ProfileRecord(user_id="ann", name="Ann", user_type=UserType.CLIENT)
        )
        businesses = self.db.list_profiles(UserType.BUSINESS)
        self.assertEqual([p.user_id for p in businesses], ["bob"])
        self.assertEqual(len(self.db.list_profiles()), 2)

    def test_appointment_status_roundtrip(self):
        later = self.db.create_appointment(
            AppointmentRecord(business_owner_id="bob", start_date_time=2000, end_date_time=3000)
        )
        earlier = self.db.create_appointment(
            AppointmentRecord(business_owner_id="bob", start_date_time=1000, end_date_time=1500)
        )
        updated = self.db.update_appointment(
            later.id,
            {"status": AppointmentStatus.BOOKED, "client_id": "ann", "notes": "gate code 12"},
        )
        self.assertEqual(updated.status, AppointmentStatus.BOOKED)
        self.assertEqual(updated.client_id, "ann")

        owned = self.db.list_appointments(business_owner_id="bob")
        self.assertEqual([a.id for a in owned], [earlier.id, later.id])
        booked = self.db.list_appointments(client_id="ann")
        self.assertEqual([a.id for a in booked], [later.id])

    def test_project_tasks_and_status(self):
        project = self.db.create_project(
            ProjectRecord(
                business_owner_id="bob",
                client_id="ann",
                project_type="landscaping",
                project_name="Front yard",
                estimated_length=2.5,
                estimated_start_date_time=1000,
                estimated_end_date_time=2000,
                project_tasks=[{"name": "Plant", "status": "queued"}],
            )
        )
        fetched = self.db.get_project(project.id)
        self.assertEqual(fetched.status, ProjectStatus.PLANNED)
        self.assertEqual(fetched.approval_status, ApprovalStatus.PENDING)
        self.assertEqual(fetched.estimated_length, 2.5)
        self.assertEqual(fetched.project_tasks, [{"name": "Plant", "status": "queued"}])

        updated = self.db.update_project(
            project.id, {"approval_status": ApprovalStatus.REJECTED, "status": "cancelled"}
        )
        self.assertEqual(updated.approval_status, ApprovalStatus.REJECTED)
        self.assertEqual(updated.status, ProjectStatus.CANCELLED)

    def test_meta_account_upsert_by_user(self):
        first = self.db.save_meta_account(
            MetaAccountRecord(
                user_id="bob", long_lived_user_token="t1", facebook_user_id="fb1"
            )
        )
        second = self.db.save_meta_account(
            MetaAccountRecord(
                user_id="bob",
                long_lived_user_token="t2",
                facebook_user_id="fb1",
                connected_pages=[{"page_id": "p1", "name": "Page", "page_access_token": "pt"}],
            )
        )
        self.assertEqual(second.id, first.id)
        accounts = self.db.list_meta_accounts()
        self.assertEqual(len(accounts), 1)
        self.assertEqual(accounts[0].long_lived_user_token, "t2")
        self.assertEqual(accounts[0].connected_pages[0]["page_id"], "p1")

        self.assertTrue(self.db.delete_meta_account("bob"))
        self.assertFalse(self.db.delete_meta_account("bob"))
        self.assertIsNone(self.db.get_meta_account("bob"))

    def test_oauth_state_lifecycle(self):
        self.db.save_oauth_state(OAuthStateRecord(state="abc", user_id="bob", expires_at=5))
        self.assertEqual(self.db.get_oauth_state("abc").user_id, "bob")
        self.db.delete_oauth_state("abc")
        self.assertIsNone(self.db.get_oauth_state("abc"))
        # Deleting again is harmless.
        self.db.delete_oauth_state("abc")

    def test_social_posts_upsert_and_delete(self):
        first = self.db.upsert_social_post(
            SocialPostRecord(
                user_id="bob", source=SocialSource.INSTAGRAM, external_id="m1", posted_at=100
            )
        )
        again = self.db.upsert_social_post(
            SocialPostRecord(
                user_id="bob",
                source=SocialSource.INSTAGRAM,
                external_id="m1",
                caption="edited",
                posted_at=100,
            )
        )
        self.assertEqual(again.id, first.id)
        self.db.upsert_social_post(
            SocialPostRecord(
                user_id="bob", source=SocialSource.FACEBOOK, external_id="m1", posted_at=200
            )
        )

        posts = self.db.list_social_posts("bob")
        self.assertEqual([p.source for p in posts], [SocialSource.FACEBOOK, SocialSource.INSTAGRAM])
        instagram = self.db.list_social_posts("bob", SocialSource.INSTAGRAM)
        self.assertEqual(len(instagram), 1)
        self.assertEqual(instagram[0].caption, "edited")

        self.assertEqual(self.db.delete_social_posts("bob"), 2)
        self.assertEqual(self.db.list_social_posts("bob"), [])


class InMemoryDbClientTests(unittest.TestCase):
    def setUp(self):
        self.db = InMemoryDbClient()

    def test_records_are_copied(self):
        profile = self.db.create_profile(
            ProfileRecord(user_id="bob", name="Bob", user_type="business", services=["a"])
        )
        profile.services.append("b")
        self.assertEqual(self.db.get_profile(profile.id).services, ["a"])

    def test_one_profile_per_user(self):
        self.db.create_profile(ProfileRecord(user_id="bob", name="Bob", user_type="client"))
        self.assertIsNone(
            self.db.create_profile(ProfileRecord(user_id="bob", name="B", user_type="client"))
        )
        self.assertEqual(len(self.db.profiles), 1)

    def test_book_only_available_slot(self):
        slot = self.db.create_appointment(
            AppointmentRecord(business_owner_id="bob", start_date_time=1000, end_date_time=2000)
        )
        self.assertEqual(self.db.book_appointment(slot.id, "ann", None).client_id, "ann")
        self.assertIsNone(self.db.book_appointment(slot.id, "cat", None))
        self.assertEqual(self.db.get_appointment(slot.id).client_id, "ann")

    def test_reset(self):
        self.db.create_profile(ProfileRecord(user_id="bob", name="Bob", user_type="client"))
        self.db.reset()
        self.assertIsNone(self.db.get_profile_by_user("bob"))

    def test_meta_account_as_dict_hides_tokens(self):
        account = self.db.save_meta_account(
            MetaAccountRecord(
                user_id="bob",
                long_lived_user_token="secret",
                facebook_user_id="fb1",
                connected_pages=[{"page_id": "p1", "name": "Page", "page_access_token": "pt"}],
            )
        )
        data = account.as_dict()
        self.assertNotIn("long_lived_user_token", data)
        self.assertEqual(data["connected_pages"], [{"page_id": "p1", "name": "Page"}])


if __name__ == "__main__":
    unittest.main()
