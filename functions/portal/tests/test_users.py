import unittest

from portal.db import InMemoryDocumentStore
from portal.errors import AuthenticationError, ConflictError, InvalidRecordError
from portal.users import DEMO_PASSWORD, DEMO_USERS, UserService
from shared.types import UserRole


class UserServiceTests(unittest.TestCase):
    def setUp(self):
        self.store = InMemoryDocumentStore()
        self.users = UserService(self.store)
        self.users.initialize_users()

    def test_initialize_users_only_seeds_empty_store(self):
        self.assertEqual(len(self.users.get_all_users()), len(DEMO_USERS))
        self.assertEqual(self.users.initialize_users(), 0)

    def test_lookup_by_email_and_national_id(self):
        user = self.users.get_user_by_email("michal.levi@ono.ac.il")
        self.assertEqual(user.id, "user-003")
        self.assertEqual(self.users.get_user_by_national_id("555666775").id, "user-003")
        self.assertIsNone(self.users.get_user_by_email("nobody@ono.ac.il"))

    def test_role_projections(self):
        lecturer_ids = {u.id for u in self.users.get_users_by_role(UserRole.LECTURER)}
        self.assertEqual(
            lecturer_ids, {"user-001", "user-003", "user-005", "user-007", "user-008"}
        )
        students = {s.id: s for s in self.users.get_students()}
        self.assertEqual(set(students), {"user-001", "user-002", "user-004", "user-007"})
        self.assertEqual(students["user-004"].academic_track, "swe-undergrad")
        self.assertEqual(len(self.users.get_admins()), 4)

    def test_login_and_session(self):
        session = self.users.login("all.roles@ono.ac.il", DEMO_PASSWORD)
        self.assertEqual(session.current_role, UserRole.ADMIN)
        self.assertEqual(
            set(session.available_roles),
            {UserRole.STUDENT, UserRole.LECTURER, UserRole.ADMIN},
        )
        self.assertIsNone(session.user.password_hash)

        stored = self.users.get_session(session.token)
        self.assertEqual(stored.user.id, "user-001")
        self.assertTrue(self.users.clear_session(session.token))
        self.assertIsNone(self.users.get_session(session.token))

    def test_login_rejects_bad_credentials(self):
        with self.assertRaises(AuthenticationError):
            self.users.login("all.roles@ono.ac.il", "wrong")
        with self.assertRaises(AuthenticationError):
            self.users.login("nobody@ono.ac.il", DEMO_PASSWORD)

    def test_switch_role_refreshes_sessions(self):
        session = self.users.login("michal.levi@ono.ac.il", DEMO_PASSWORD)
        self.assertEqual(session.current_role, UserRole.LECTURER)

        self.assertTrue(self.users.switch_user_role("user-003", UserRole.ADMIN))
        self.assertEqual(self.users.get_user_by_id("user-003").current_role, UserRole.ADMIN)
        self.assertEqual(self.users.get_session(session.token).current_role, UserRole.ADMIN)

        self.assertFalse(self.users.switch_user_role("user-003", UserRole.STUDENT))
        self.assertFalse(self.users.switch_user_role("user-003", "janitor"))
        self.assertFalse(self.users.switch_user_role("missing", UserRole.ADMIN))

    def test_create_user_generates_role_ids(self):
        user = self.users.create_user(
            {
                "full_name": "רון אלון",
                "email": "ron@ono.ac.il",
                "national_id": "700000003",
                "roles": ["student", "admin"],
            }
        )
        self.assertTrue(user.id.startswith("user-"))
        self.assertEqual(user.student_id, "STU0005")
        self.assertEqual(user.admin_id, "ADM0005")
        self.assertIsNone(user.employee_id)
        self.assertEqual(user.current_role, UserRole.STUDENT)

    def test_create_user_with_password_can_log_in(self):
        self.users.create_user(
            {
                "full_name": "Lecturer",
                "email": "new.lecturer@ono.ac.il",
                "national_id": "111111118",
                "roles": ["lecturer"],
            },
            password="s3cret!",
        )
        session = self.users.login("new.lecturer@ono.ac.il", "s3cret!")
        self.assertEqual(session.current_role, UserRole.LECTURER)

    def test_create_user_validation(self):
        with self.assertRaises(InvalidRecordError):
            self.users.create_user({"email": "x@ono.ac.il", "national_id": "1", "roles": []})
        with self.assertRaises(InvalidRecordError):
            self.users.create_user({"email": "x@ono.ac.il", "roles": ["student"]})
        with self.assertRaises(ConflictError):
            self.users.create_user(
                {"email": "admin@ono.ac.il", "national_id": "800000002", "roles": ["student"]}
            )
        with self.assertRaises(ConflictError):
            self.users.create_user(
                {"email": "fresh@ono.ac.il", "national_id": "400000006", "roles": ["admin"]}
            )
        with self.assertRaises(InvalidRecordError):
            self.users.create_user(
                {"email": "fresh@ono.ac.il", "national_id": "800000003", "roles": ["student"]}
            )
        with self.assertRaises(InvalidRecordError):
            self.users.create_user(
                {"email": "fresh@ono", "national_id": "800000002", "roles": ["student"]}
            )
        self.assertIsNone(self.users.get_user_by_email("fresh@ono.ac.il"))

    def test_update_user(self):
        updated = self.users.update_user("user-002", {"year": 3, "password": "changed1"})
        self.assertEqual(updated.year, 3)
        self.users.login("yossi.cohen@student.ono.ac.il", "changed1")

        with self.assertRaises(ConflictError):
            self.users.update_user("user-002", {"email": "admin@ono.ac.il"})
        with self.assertRaises(InvalidRecordError):
            self.users.update_user("user-002", {"roles": ["janitor"]})
        self.assertIsNone(self.users.update_user("missing", {"year": 1}))
        with self.assertRaises(InvalidRecordError):
            self.users.update_user("user-002", {"national_id": "987654321"})
        with self.assertRaises(InvalidRecordError):
            self.users.update_user("user-002", {"email": "yossi.cohen"})

    def test_update_user_roles_normalises_role_ids_and_current_role(self):
        promoted = self.users.update_user("user-002", {"roles": ["student", "admin"]})
        self.assertEqual(promoted.admin_id, "ADM0005")
        self.assertEqual(promoted.student_id, "STU0002")
        self.assertEqual(promoted.current_role, UserRole.STUDENT)

        demoted = self.users.update_user("user-003", {"roles": ["admin"]})
        self.assertEqual(demoted.roles, [UserRole.ADMIN])
        self.assertEqual(demoted.current_role, UserRole.ADMIN)
        self.assertEqual(self.users.get_user_by_id("user-003").current_role, UserRole.ADMIN)

        with self.assertRaises(InvalidRecordError):
            self.users.update_user("user-005", {"roles": []})
        self.assertEqual(self.users.get_user_by_id("user-005").roles, [UserRole.LECTURER])

    def test_delete_user_drops_sessions(self):
        session = self.users.login("student@ono.ac.il", DEMO_PASSWORD)
        self.assertTrue(self.users.delete_user("user-004"))
        self.assertIsNone(self.users.get_user_by_id("user-004"))
        self.assertIsNone(self.users.get_session(session.token))
        self.assertFalse(self.users.delete_user("user-004"))

    def test_track_ids_for_role(self):
        user = self.users.get_user_by_id("user-001")
        self.assertEqual(self.users.track_ids_for(user, UserRole.STUDENT), ["cs-undergrad"])
        self.assertEqual(
            self.users.track_ids_for(user, UserRole.LECTURER), ["cs-undergrad", "cs-grad"]
        )
        self.assertEqual(self.users.track_ids_for(user, UserRole.ADMIN), [])


class LegacyMigrationTests(unittest.TestCase):
    def test_merges_roles_by_national_id_and_email(self):
        users = UserService(InMemoryDocumentStore())
        migrated = users.migrate_from_legacy_data(
            {
                "mock_students": [
                    {
                        "id": "student-001",
                        "full_name": "דנה",
                        "email": "dana@ono.ac.il",
                        "national_id": "123456782",
                        "student_id": "STU2024001",
                        "academic_track_ids": ["cs-undergrad"],
                    }
                ],
                "mock_lecturers": [
                    {
                        "id": "lecturer-001",
                        "full_name": "דנה",
                        "email": "dana@ono.ac.il",
                        "national_id": "123456782",
                        "employee_id": "EMP1001",
                        "academic_tracks": ["cs-grad"],
                    },
                    {"id": "lecturer-002", "full_name": "אבי", "email": "avi@ono.ac.il"},
                ],
                "mock_users": [
                    {"email": "dana@ono.ac.il", "roles": ["admin"], "admin_id": "ADM0001"},
                    {"email": "ignored@ono.ac.il", "roles": ["student"]},
                ],
            }
        )

        self.assertEqual(len(migrated), 2)
        dana = users.get_user_by_id("student-001")
        self.assertEqual(
            dana.roles, [UserRole.STUDENT, UserRole.LECTURER, UserRole.ADMIN]
        )
        self.assertEqual(dana.employee_id, "EMP1001")
        self.assertEqual(dana.lecturer_academic_track_ids, ["cs-grad"])
        self.assertEqual(dana.admin_id, "ADM0001")

        avi = users.get_user_by_id("lecturer-002")
        self.assertEqual(avi.roles, [UserRole.LECTURER])
        self.assertRegex(avi.national_id, r"^\d{9}$")


if __name__ == "__main__":
    unittest.main()
