import unittest

from portal.dashboard import get_dashboard_data
from portal.db import InMemoryDocumentStore
from portal.portal_service import PortalService
from shared.types import UserRole


class DashboardTests(unittest.TestCase):
    def setUp(self):
        self.service = PortalService(InMemoryDocumentStore())
        self.service.add_student({"full_name": "דנה", "national_id": "123456782"})
        self.service.add_lecturer({"full_name": 'ד"ר כהן'})
        self.service.add_course({"name": "אלגוריתמים"})
        files = [
            ("student-a", "pending", None),
            ("student-a", "approved", "lecturer-a"),
            ("student-a", "rejected", "lecturer-b"),
            ("student-b", "pending", None),
            ("student-b", "approved", "lecturer-a"),
        ]
        for uploader, status, reviewer in files:
            self.service.add_file(
                {
                    "original_name": f"{uploader}-{status}.pdf",
                    "uploader_id": uploader,
                    "status": status,
                    "approved_by": reviewer,
                }
            )
        self.service.add_notification({"user_id": "student-a", "title": "שלום"})
        self.service.add_notification({"user_id": "lecturer-a", "title": "קובץ חדש"})
        self.service.add_message(
            {"sender_id": "student-a", "sender_type": "student", "subject": "שאלה"}
        )
        self.service.add_message(
            {"sender_id": "lecturer-a", "sender_type": "lecturer", "subject": "הודעה"}
        )

    def test_totals_for_every_role(self):
        data = get_dashboard_data(self.service, "anyone", None)
        self.assertEqual(
            data,
            {"total_students": 1, "total_lecturers": 1, "total_courses": 1, "total_files": 5},
        )

    def test_admin_sees_review_queue(self):
        data = get_dashboard_data(self.service, "admin-1", UserRole.ADMIN)
        self.assertEqual(
            (data["pending_files"], data["approved_files"], data["rejected_files"]), (2, 2, 1)
        )
        self.assertEqual(len(data["recent_files"]), 2)
        self.assertTrue(all(f["status"] == "pending" for f in data["recent_files"]))
        self.assertEqual(len(data["recent_notifications"]), 2)

    def test_lecturer_sees_student_messages(self):
        data = get_dashboard_data(self.service, "lecturer-a", UserRole.LECTURER)
        self.assertEqual(data["my_approved_files"], 2)
        self.assertEqual(data["pending_files"], 2)
        self.assertEqual([m["subject"] for m in data["recent_messages"]], ["שאלה"])
        self.assertEqual([n["title"] for n in data["recent_notifications"]], ["קובץ חדש"])

    def test_student_sees_own_files(self):
        data = get_dashboard_data(self.service, "student-a", UserRole.STUDENT)
        self.assertEqual(
            (data["my_pending_files"], data["my_approved_files"], data["my_rejected_files"]),
            (1, 1, 1),
        )
        self.assertEqual(len(data["my_recent_files"]), 3)
        self.assertEqual([m["subject"] for m in data["my_recent_messages"]], ["שאלה"])


if __name__ == "__main__":
    unittest.main()
