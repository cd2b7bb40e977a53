import unittest

from fastapi.testclient import TestClient

from portal.app import create_app
from portal.dependencies import get_document_store, reset_backends
from portal.portal_service import PortalService
from portal.seed import MockDataGenerator
from portal.users import DEMO_PASSWORD, UserService


class PortalApiTests(unittest.TestCase):
    def setUp(self):
        reset_backends()
        self.addCleanup(reset_backends)
        store = get_document_store()
        UserService(store).initialize_users()
        PortalService(store, MockDataGenerator(seed=11)).generate_mock_data()
        self.client = TestClient(create_app())

    def login(self, email):
        response = self.client.post(
            "/api/auth/login", json={"email": email, "password": DEMO_PASSWORD}
        )
        self.assertEqual(response.status_code, 200, response.text)
        return {"Authorization": f"Bearer {response.json()['token']}"}

    def upload(self, headers, name="summary.pdf"):
        response = self.client.post(
            "/api/files/upload",
            headers=headers,
            data={"course_id": "course-001"},
            files={"file": (name, b"%PDF-1.4 test", "application/pdf")},
        )
        self.assertEqual(response.status_code, 201, response.text)
        return response.json()

    def test_login_failure(self):
        response = self.client.post(
            "/api/auth/login", json={"email": "student@ono.ac.il", "password": "nope"}
        )
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["detail"], "Invalid email or password")

    def test_requires_session(self):
        self.assertEqual(self.client.get("/api/dashboard").status_code, 401)
        response = self.client.get(
            "/api/dashboard", headers={"Authorization": "Bearer not-a-token"}
        )
        self.assertEqual(response.status_code, 401)

    def test_session_and_logout(self):
        headers = self.login("student@ono.ac.il")
        session = self.client.get("/api/auth/session", headers=headers).json()
        self.assertEqual(session["current_role"], "student")
        self.assertNotIn("password_hash", session["user"])

        self.assertTrue(self.client.post("/api/auth/logout", headers=headers).json()["deleted"])
        self.assertEqual(self.client.get("/api/auth/session", headers=headers).status_code, 401)

    def test_switch_role_changes_permissions(self):
        headers = self.login("all.roles@ono.ac.il")
        self.assertEqual(self.client.get("/api/admin/file-status", headers=headers).status_code, 200)

        response = self.client.post(
            "/api/auth/switch-role", headers=headers, json={"role": "student"}
        )
        self.assertEqual(response.json()["current_role"], "student")
        self.assertEqual(self.client.get("/api/admin/file-status", headers=headers).status_code, 403)

        student = self.login("student@ono.ac.il")
        response = self.client.post(
            "/api/auth/switch-role", headers=student, json={"role": "admin"}
        )
        self.assertEqual(response.status_code, 400)

    def test_entity_routes(self):
        headers = self.login("admin@ono.ac.il")
        listed = self.client.get(
            "/api/entities/courses", headers=headers, params={"sort_by": "-credits", "limit": 3}
        ).json()
        self.assertEqual(len(listed), 3)
        self.assertGreaterEqual(listed[0]["credits"], listed[-1]["credits"])

        pending = self.client.get(
            "/api/entities/files", headers=headers, params={"status": "pending"}
        ).json()
        self.assertTrue(pending)
        self.assertTrue(all(f["status"] == "pending" for f in pending))

        created = self.client.post(
            "/api/entities/messages", headers=headers, json={"subject": "שאלה", "content": "?"}
        )
        self.assertEqual(created.status_code, 201)
        message_id = created.json()["id"]
        self.assertEqual(
            self.client.get(f"/api/entities/messages/{message_id}", headers=headers).json()[
                "subject"
            ],
            "שאלה",
        )
        self.assertEqual(
            self.client.get("/api/entities/messages/missing", headers=headers).status_code, 404
        )
        self.assertEqual(
            self.client.post("/api/entities/grades", headers=headers, json={}).status_code, 400
        )
        response = self.client.put(
            f"/api/entities/messages/{message_id}", headers=headers, json={"status": "bogus"}
        )
        self.assertEqual(response.status_code, 422)

    def test_only_admin_deletes_entities(self):
        student = self.login("student@ono.ac.il")
        self.assertEqual(
            self.client.delete("/api/entities/courses/course-001", headers=student).status_code,
            403,
        )
        admin = self.login("admin@ono.ac.il")
        self.assertEqual(
            self.client.delete("/api/entities/courses/course-001", headers=admin).status_code,
            200,
        )

    def test_upload_review_and_notification_flow(self):
        student = self.login("student@ono.ac.il")
        uploaded = self.upload(student)
        self.assertEqual(uploaded["uploader_id"], "user-004")
        self.assertEqual(uploaded["uploader_type"], "student")

        self.assertEqual(
            self.client.post(f"/api/files/{uploaded['id']}/approve", headers=student).status_code,
            403,
        )
        lecturer = self.login("lecturer@ono.ac.il")
        approved = self.client.post(f"/api/files/{uploaded['id']}/approve", headers=lecturer)
        self.assertEqual(approved.json()["status"], "approved")
        again = self.client.post(f"/api/files/{uploaded['id']}/reject", headers=lecturer)
        self.assertEqual(again.status_code, 409)

        check = self.client.get("/api/notifications/check", headers=student).json()
        self.assertEqual(check["notification"]["title"], "הקובץ אושר")
        self.assertIsNone(
            self.client.get("/api/notifications/check", headers=student).json()["notification"]
        )
        counts = self.client.get("/api/notifications/counts", headers=student).json()
        self.assertEqual(counts["unread_notifications"], 1)

        marked = self.client.post("/api/notifications/read-all", headers=student).json()
        self.assertEqual(marked["updated"], 1)

        download = self.client.get(f"/api/files/{uploaded['id']}/download", headers=student)
        self.assertEqual(download.json()["download_count"], 1)
        self.assertIn(uploaded["storage_path"], download.json()["url"])

    def test_reject_with_and_without_reason(self):
        student = self.login("student@ono.ac.il")
        lecturer = self.login("lecturer@ono.ac.il")
        first = self.upload(student, "a.pdf")
        second = self.upload(student, "b.pdf")

        rejected = self.client.post(
            f"/api/files/{first['id']}/reject", headers=lecturer, json={"reason": "כפילות"}
        ).json()
        self.assertEqual(rejected["rejection_reason"], "כפילות")
        rejected = self.client.post(f"/api/files/{second['id']}/reject", headers=lecturer).json()
        self.assertEqual(rejected["status"], "rejected")
        self.assertIsNone(rejected["rejection_reason"])

    def test_entity_routes_cannot_review_files(self):
        student = self.login("student@ono.ac.il")
        uploaded = self.upload(student)
        path = f"/api/entities/files/{uploaded['id']}"

        for change in ({"status": "approved"}, {"approved_by": "user-004"}):
            response = self.client.put(path, headers=student, json=change)
            self.assertEqual(response.status_code, 403, response.text)
        self.assertEqual(self.client.get(path, headers=student).json()["status"], "pending")

        tagged = self.client.put(path, headers=student, json={"tags": ["סיכום"]})
        self.assertEqual(tagged.status_code, 200, tagged.text)
        self.assertEqual(tagged.json()["tags"], ["סיכום"])

        created = self.client.post(
            "/api/entities/files",
            headers=student,
            json={"original_name": "x.pdf", "course_id": "course-001", "status": "approved"},
        )
        self.assertEqual(created.status_code, 403)

    def test_upload_validation(self):
        student = self.login("student@ono.ac.il")
        response = self.client.post(
            "/api/files/upload",
            headers=student,
            data={"course_id": "course-001"},
            files={"file": ("run.exe", b"MZ", "application/x-msdownload")},
        )
        self.assertEqual(response.status_code, 400)
        response = self.client.post(
            "/api/files/upload",
            headers=student,
            data={"course_id": "missing"},
            files={"file": ("a.pdf", b"%PDF", "application/pdf")},
        )
        self.assertEqual(response.status_code, 404)

    def test_only_uploader_or_admin_deletes_file(self):
        owner = self.login("student@ono.ac.il")
        uploaded = self.upload(owner)
        other = self.login("yossi.cohen@student.ono.ac.il")
        self.assertEqual(
            self.client.delete(f"/api/files/{uploaded['id']}", headers=other).status_code, 403
        )
        self.assertTrue(
            self.client.delete(f"/api/files/{uploaded['id']}", headers=owner).json()["deleted"]
        )
        self.assertEqual(
            self.client.delete(f"/api/files/{uploaded['id']}", headers=owner).status_code, 404
        )

    def test_dashboard_and_my_courses(self):
        student = self.login("student@ono.ac.il")
        dashboard = self.client.get("/api/dashboard", headers=student).json()
        self.assertEqual(dashboard["total_files"], 150)
        self.assertIn("my_pending_files", dashboard)

        courses = self.client.get("/api/courses/mine", headers=student).json()
        self.assertTrue(courses)
        self.assertTrue(
            all("swe-undergrad" in c["academic_track_ids"] for c in courses)
        )

    def test_academic_tracks(self):
        response = self.client.get("/api/academic-tracks")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.json()), 10)

    def test_admin_user_management(self):
        admin = self.login("admin@ono.ac.il")
        self.assertEqual(
            self.client.get("/api/users", headers=self.login("student@ono.ac.il")).status_code,
            403,
        )
        admins = self.client.get("/api/users", headers=admin, params={"role": "admin"}).json()
        self.assertEqual(len(admins), 4)

        created = self.client.post(
            "/api/users",
            headers=admin,
            json={
                "full_name": "שירה נוי",
                "email": "shira@ono.ac.il",
                "national_id": "700000003",
                "roles": ["student"],
                "password": "welcome1",
            },
        )
        self.assertEqual(created.status_code, 201, created.text)
        user = created.json()
        self.assertEqual(user["student_id"], "STU0005")
        self.assertNotIn("password_hash", user)
        login = self.client.post(
            "/api/auth/login", json={"email": "shira@ono.ac.il", "password": "welcome1"}
        )
        self.assertEqual(login.status_code, 200)

        duplicate = self.client.post(
            "/api/users",
            headers=admin,
            json={
                "full_name": "x",
                "email": "shira@ono.ac.il",
                "national_id": "700000011",
                "roles": ["student"],
            },
        )
        self.assertEqual(duplicate.status_code, 409)

        malformed = self.client.post(
            "/api/users",
            headers=admin,
            json={
                "full_name": "x",
                "email": "new.user@ono.ac.il",
                "national_id": "700000004",
                "roles": ["student"],
            },
        )
        self.assertEqual(malformed.status_code, 422)

        updated = self.client.put(
            f"/api/users/{user['id']}", headers=admin, json={"year": 2}
        ).json()
        self.assertEqual(updated["year"], 2)
        self.assertTrue(
            self.client.delete(f"/api/users/{user['id']}", headers=admin).json()["deleted"]
        )

    def test_admin_data_tools(self):
        admin = self.login("admin@ono.ac.il")
        report = self.client.get("/api/admin/file-status", headers=admin).json()
        self.assertEqual(report["total"], 150)

        ensured = self.client.post("/api/admin/ensure-file-variety", headers=admin).json()
        self.assertEqual(ensured["added"], 0)

        reset = self.client.post("/api/admin/reset-data", headers=admin)
        self.assertEqual(reset.status_code, 200)
        self.assertEqual(reset.json()["files"], 150)
        self.assertEqual(reset.json()["users"], 8)
        # Sessions are cleared with the rest of the data.
        self.assertEqual(self.client.get("/api/auth/session", headers=admin).status_code, 401)
        self.login("admin@ono.ac.il")


if __name__ == "__main__":
    unittest.main()
