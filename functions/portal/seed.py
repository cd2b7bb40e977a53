"""
Mock data for demos and local development.

The generator is seedable so tests get a stable dataset. Files get a fixed
status mix (40% pending, 45% approved, 15% rejected) so every review screen
has something to show.
"""

from __future__ import annotations

import random
import string
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Optional, Sequence

from shared.records import Course, CourseFile, Lecturer, Message, Notification, Student
from shared.types import (
    ActiveStatus,
    FileStatus,
    MessageStatus,
    MessageType,
    NotificationType,
    Priority,
    Semester,
    StudentStatus,
    UploaderType,
)
from shared.validation import israeli_id_check_digit

HEBREW_NAMES = [
    "דוד כהן", "שרה לוי", "משה אברהם", "רות דוד", "יוסף מזרחי",
    "מירי שלום", "אבי גולד", "נועה ברק", "עמית כץ", "הדר רוזן",
    "טל שמיר", "גל נחמן", "רונן דהן", "יעל פרץ", "איתן מור",
]

ACADEMIC_TRACK_IDS = [
    "cs-undergrad", "swe-undergrad", "math-undergrad", "physics-undergrad",
    "law-undergrad", "business-undergrad", "business-grad", "psychology-undergrad",
    "education-grad", "cs-grad",
]

# Graduate tracks have no seeded students.
STUDENT_TRACK_IDS = [
    "cs-undergrad", "swe-undergrad", "math-undergrad", "physics-undergrad",
    "law-undergrad", "business-undergrad", "psychology-undergrad",
]

DEPARTMENTS = [
    "מדעי המחשב", "הנדסה", "כלכלה ועסקים", "מדעי החברה", "משפטים", "עיצוב ואמנות",
]

SPECIALIZATIONS = [
    "בינה מלאכותית", "אבטחת מידע", "פיתוח אפליקציות", "מסדי נתונים",
    "כלכלה מיקרו", "שיווק דיגיטלי", "פסיכולוגיה קלינית", "חינוך מיוחד",
]

LECTURER_TITLES = ['ד"ר', "פרופ'", "מר", "גב'", "מר"]

# (name, code, credits, track ids, department)
COURSE_CATALOGUE = [
    ("מבוא למדעי המחשב", "CS101", 4, ["cs-undergrad", "swe-undergrad"], "מדעים והנדסה"),
    ("מבני נתונים ואלגוריתמים", "CS201", 5, ["cs-undergrad", "swe-undergrad"], "מדעים והנדסה"),
    ("מסדי נתונים", "CS301", 4, ["cs-undergrad", "swe-undergrad"], "מדעים והנדסה"),
    ("הנדסת תוכנה", "SE301", 4, ["swe-undergrad"], "מדעים והנדסה"),
    ("רשתות מחשבים", "CS401", 3, ["cs-undergrad", "cs-grad"], "מדעים והנדסה"),
    ("בינה מלאכותית", "CS501", 4, ["cs-grad"], "מדעים והנדסה"),
    ("אבטחת מידע", "CS451", 3, ["cs-undergrad", "cs-grad"], "מדעים והנדסה"),
    ("מתמטיקה דיסקרטית", "MATH101", 4, ["math-undergrad", "cs-undergrad"], "מדעים מדויקים"),
    ("סטטיסטיקה", "MATH201", 3, ["math-undergrad", "psychology-undergrad"], "מדעים מדויקים"),
    ("פיזיקה כללית", "PHYS101", 5, ["physics-undergrad"], "מדעים מדויקים"),
    ("חוקי חוזים", "LAW201", 4, ["law-undergrad"], "משפטים"),
    ("דיני חברות", "LAW301", 3, ["law-undergrad"], "משפטים"),
    ("ניהול ואסטרטגיה", "BUS101", 4, ["business-undergrad", "business-grad"], "ניהול וכלכלה"),
    ("שיווק דיגיטלי", "BUS301", 3, ["business-undergrad", "business-grad"], "ניהול וכלכלה"),
    ("חשבונאות פיננסית", "ACC101", 4, ["business-undergrad"], "ניהול וכלכלה"),
    ("פסיכולוגיה כללית", "PSY101", 4, ["psychology-undergrad"], "מדעי החברה"),
    ("פסיכולוגיה התפתחותית", "PSY201", 3, ["psychology-undergrad"], "מדעי החברה"),
    ("ייעוץ והדרכה", "EDU501", 4, ["education-grad"], "מדעי החברה"),
    ("מחקר כמותי", "RES401", 3, ["psychology-undergrad", "education-grad"], "מדעי החברה"),
    ("כלכלה מיקרו", "ECON101", 4, ["business-undergrad"], "ניהול וכלכלה"),
]

FILE_TYPES = ["pdf", "docx", "pptx", "xlsx", "txt"]
FILE_NAMES = [
    "הרצאה 1 - מבוא", "תרגיל בית 2", "מצגת שיעור", "חומר עזר",
    "דוגמאות קוד", "סיכום נושא", "מבחן דוגמא", "פתרון תרגיל",
    "הנחיות פרויקט", "רשימת ביבליוגרפיה", "נושאי מחקר", "דוח פרויקט",
    "סיכום הרצאה", "תרגיל מעשי", "חומר הכנה למבחן",
]
FILE_TAGS = ["חומר לימוד", "תרגיל", "מבחן"]

REJECTION_REASONS = [
    "הקובץ אינו רלוונטי לקורס",
    "איכות הקובץ אינה מספקת",
    "הקובץ כבר קיים במערכת",
    "תוכן הקובץ אינו מתאים",
    "הקובץ פגום או לא ניתן לקריאה",
    "זכויות יוצרים - הקובץ מוגן",
    "הקובץ לא עומד בדרישות הקורס",
    "מידע שגוי או לא מעודכן",
]

MESSAGE_SUBJECTS = [
    "בקשה לעזרה בתרגיל", "שאלה לגבי הרצאה", "בעיה טכנית", "בקשה לארכה",
    "הצעה לפרויקט", "שאלה לגבי ציון", "תלונה על מערכת", "בקשה לפגישה",
    "שאלה כללית", "עדכון חשוב",
]
MESSAGE_CATEGORIES = ["טכני", "אקדמי", "מנהלי"]

NOTIFICATION_TEMPLATES = [
    ("קובץ חדש הועלה", "הועלה קובץ חדש לקורס מבוא למדעי המחשב", NotificationType.INFO),
    ("ציון חדש", "התקבל ציון חדש למטלה בקורס אלגוריתמים", NotificationType.SUCCESS),
    ("תזכורת הגשה", "נותרו 3 ימים להגשת התרגיל", NotificationType.WARNING),
    ("שגיאה במערכת", "זוהתה בעיה זמנית במערכת", NotificationType.ERROR),
    ("עדכון מערכת", "המערכת עודכנה לגירסה חדשה", NotificationType.INFO),
]

LECTURER_POOL_SIZE = 12


@dataclass
class SeedData:
    students: list[Student] = field(default_factory=list)
    lecturers: list[Lecturer] = field(default_factory=list)
    courses: list[Course] = field(default_factory=list)
    files: list[CourseFile] = field(default_factory=list)
    messages: list[Message] = field(default_factory=list)
    notifications: list[Notification] = field(default_factory=list)


def _iso(value: datetime) -> str:
    return value.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class MockDataGenerator:
    """Builds linked mock records; pass `seed` for a reproducible dataset."""

    def __init__(self, seed: Optional[int] = None, now: Optional[datetime] = None):
        self.random = random.Random(seed)
        self.now = now or datetime.now(timezone.utc)

    def random_id(self) -> str:
        alphabet = string.ascii_lowercase + string.digits
        return "".join(self.random.choice(alphabet) for _ in range(9))

    def random_date(self, days_back: int = 365) -> str:
        return _iso(self.now - timedelta(days=self.random.randrange(max(days_back, 1))))

    def israeli_id(self) -> str:
        first_eight = "".join(str(self.random.randrange(10)) for _ in range(8))
        return f"{first_eight}{israeli_id_check_digit(first_eight)}"

    def _lecturer_ref(self) -> str:
        return f"lecturer-{self.random.randrange(LECTURER_POOL_SIZE) + 1:03d}"

    def generate_students(self, count: int = 10) -> list[Student]:
        students = []
        for i in range(count):
            track_id = STUDENT_TRACK_IDS[i % len(STUDENT_TRACK_IDS)]
            if self.random.random() > 0.05:
                status = StudentStatus.ACTIVE
            elif self.random.random() > 0.7:
                status = StudentStatus.INACTIVE
            else:
                status = StudentStatus.GRADUATED
            students.append(
                Student(
                    id=f"student-{i + 1:03d}",
                    full_name=HEBREW_NAMES[i % len(HEBREW_NAMES)],
                    email=f"student{i + 1}@ono.ac.il",
                    student_id=f"STU{i + 2024:04d}{i + 1:03d}",
                    national_id=self.israeli_id(),
                    academic_track=track_id,
                    academic_track_ids=[track_id],
                    year=self.random.randint(1, 4),
                    phone=f"05{self.random.randrange(9)}{self.random.randrange(10_000_000):07d}",
                    status=status,
                    created_at=self.random_date(365),
                    updated_at=self.random_date(30),
                )
            )
        return sorted(students, key=lambda s: s.full_name)

    def generate_lecturers(self, count: int = 10) -> list[Lecturer]:
        lecturers = []
        for i in range(count):
            title = LECTURER_TITLES[i % len(LECTURER_TITLES)]
            name = HEBREW_NAMES[(i + 5) % len(HEBREW_NAMES)]
            lecturers.append(
                Lecturer(
                    id=f"lecturer-{i + 1:03d}",
                    full_name=f"{title} {name}",
                    email=f"lecturer{i + 1}@ono.ac.il",
                    employee_id=f"EMP{i + 1001:04d}",
                    national_id=self.israeli_id(),
                    department=DEPARTMENTS[i % len(DEPARTMENTS)],
                    specialization=SPECIALIZATIONS[i % len(SPECIALIZATIONS)],
                    phone=f"03{self.random.randrange(10_000_000):07d}",
                    status=ActiveStatus.ACTIVE
                    if self.random.random() > 0.02
                    else ActiveStatus.INACTIVE,
                    academic_track_ids=[ACADEMIC_TRACK_IDS[i % len(ACADEMIC_TRACK_IDS)]],
                    created_at=self.random_date(365),
                    updated_at=self.random_date(30),
                )
            )
        return sorted(lecturers, key=lambda l: l.full_name)

    def generate_courses(
        self, count: int = 10, lecturers: Sequence[Lecturer] = ()
    ) -> list[Course]:
        lecturer_ids = [l.id for l in lecturers] or [
            f"lecturer-{i + 1:03d}" for i in range(LECTURER_POOL_SIZE)
        ]
        courses = []
        for i in range(count):
            name, code, credits, tracks, department = COURSE_CATALOGUE[
                i % len(COURSE_CATALOGUE)
            ]
            courses.append(
                Course(
                    id=f"course-{i + 1:03d}",
                    name=name,
                    code=code,
                    description=(
                        f"{name} - קורס מקצועי המועבר במחלקת {department}. "
                        "הקורס כולל הרצאות, תרגילים ופרויקטים מעשיים."
                    ),
                    credits=credits,
                    semester=self.random.choice(list(Semester)),
                    year=2024,
                    lecturer_id=lecturer_ids[i % len(lecturer_ids)],
                    academic_track=tracks[0],
                    academic_track_ids=list(tracks),
                    max_students=25 + self.random.randrange(25),
                    enrolled_students=self.random.randrange(30),
                    status=ActiveStatus.ACTIVE
                    if self.random.random() > 0.05
                    else ActiveStatus.INACTIVE,
                    created_at=self.random_date(365),
                    updated_at=self.random_date(30),
                )
            )
        return courses

    def generate_files(
        self,
        count: int = 10,
        courses: Sequence[Course] = (),
        students: Sequence[Student] = (),
        start_index: int = 0,
    ) -> list[CourseFile]:
        """
        Files numbered from `start_index + 1`, linked round-robin to the given
        courses and students. Statuses follow `apply_status_distribution`.
        """
        course_ids = [c.id for c in courses] or [f"course-{i + 1:03d}" for i in range(5)]
        student_ids = [s.id for s in students] or [f"student-{i + 1:03d}" for i in range(5)]
        files = []
        for i in range(count):
            file_type = FILE_TYPES[i % len(FILE_TYPES)]
            name = FILE_NAMES[i % len(FILE_NAMES)]
            created = self.random_date(90)
            number = start_index + i + 1
            files.append(
                CourseFile(
                    id=f"file-{number:03d}",
                    filename=f"{'_'.join(name.split())}.{file_type}",
                    original_name=f"{name}.{file_type}",
                    file_type=file_type,
                    file_size=self.random.randrange(100_000, 5_100_000),
                    course_id=course_ids[i % len(course_ids)],
                    uploader_id=student_ids[i % len(student_ids)],
                    uploader_type=UploaderType.LECTURER
                    if self.random.random() > 0.7
                    else UploaderType.STUDENT,
                    download_count=self.random.randrange(50),
                    tags=FILE_TAGS[: self.random.randint(1, len(FILE_TAGS))],
                    created_at=created,
                    updated_at=created,
                )
            )
        self.apply_status_distribution(files)
        return files

    def apply_status_distribution(self, files: Sequence[CourseFile]) -> dict:
        """Assigns statuses by position and returns the per-status counts."""
        counts = {status: 0 for status in FileStatus}
        for index, record in enumerate(files):
            slot = index % 20
            if slot < 8:
                record.status = FileStatus.PENDING
                record.approval_date = None
                record.approved_by = None
                record.rejection_reason = None
            elif slot < 17:
                record.status = FileStatus.APPROVED
                record.approval_date = self.random_date(30)
                record.approved_by = self._lecturer_ref()
                record.rejection_reason = None
            else:
                record.status = FileStatus.REJECTED
                record.approval_date = self.random_date(15)
                record.approved_by = self._lecturer_ref()
                record.rejection_reason = self.random.choice(REJECTION_REASONS)
            counts[record.status] += 1
        return counts

    def generate_messages(
        self,
        count: int = 10,
        students: Sequence[Student] = (),
        lecturers: Sequence[Lecturer] = (),
    ) -> list[Message]:
        messages = []
        for i in range(count):
            subject = MESSAGE_SUBJECTS[i % len(MESSAGE_SUBJECTS)]
            sender_id = (
                students[i % len(students)].id
                if students
                else f"student-{self.random_id()}"
            )
            recipient_id = None
            if self.random.random() > 0.3:
                recipient_id = (
                    lecturers[i % len(lecturers)].id
                    if lecturers
                    else f"lecturer-{self.random_id()}"
                )
            messages.append(
                Message(
                    id=f"message-{self.random_id()}",
                    sender_id=sender_id,
                    sender_type=UploaderType.LECTURER
                    if self.random.random() > 0.7
                    else UploaderType.STUDENT,
                    recipient_id=recipient_id,
                    subject=subject,
                    content=f"תוכן הודעה מפורט לגבי {subject}. זהו טקסט דוגמא ארוך יותר.",
                    message_type=self.random.choice(list(MessageType)),
                    status=self.random.choice(list(MessageStatus)),
                    priority=self.random.choice(list(Priority)),
                    category=self.random.choice(MESSAGE_CATEGORIES),
                    created_at=self.random_date(365),
                    updated_at=self.random_date(30),
                )
            )
        return messages

    def generate_notifications(
        self, count: int = 10, user_ids: Sequence[str] = ()
    ) -> list[Notification]:
        notifications = []
        for i in range(count):
            title, message, kind = NOTIFICATION_TEMPLATES[i % len(NOTIFICATION_TEMPLATES)]
            created = self.random_date(30)
            notifications.append(
                Notification(
                    id=f"notification-{self.random_id()}",
                    user_id=user_ids[i % len(user_ids)]
                    if user_ids
                    else f"student-{self.random_id()}",
                    title=title,
                    message=message,
                    type=kind,
                    is_read=self.random.random() > 0.4,
                    action_url="/courses" if self.random.random() > 0.5 else None,
                    action_text="צפה בפרטים" if self.random.random() > 0.5 else None,
                    created_at=created,
                    updated_at=created,
                )
            )
        return notifications

    def generate_dataset(
        self,
        students: int = 15,
        lecturers: int = 12,
        courses: int = 20,
        files: int = 150,
        messages: int = 30,
        notifications: int = 25,
    ) -> SeedData:
        data = SeedData()
        data.students = self.generate_students(students)
        data.lecturers = self.generate_lecturers(lecturers)
        data.courses = self.generate_courses(courses, data.lecturers)
        data.files = self.generate_files(files, data.courses, data.students)
        data.messages = self.generate_messages(messages, data.students, data.lecturers)
        data.notifications = self.generate_notifications(
            notifications, [s.id for s in data.students]
        )
        return data
