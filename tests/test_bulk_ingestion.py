"""
Tests for spreadsheet bulk user creation and bulk mark uploads
"""
import os

import pytest

from levelminds.core.errors import InvalidInput
from levelminds.core.security import verify_password
from levelminds.models.skill import StudentCoreSkillAssessment
from levelminds.models.user import Student, User
from levelminds.services import bulk_ingestion
from levelminds.services.bulk_ingestion import cell, parse_mark, parse_tabular_upload
from levelminds.services.email_service import EmailService

XLSX_MIME = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@pytest.fixture
def admin_headers(make_admin, auth_headers):
    return auth_headers(make_admin())


def staged_files(upload_dir):
    staging = upload_dir / "tmp"
    return os.listdir(staging) if staging.exists() else []


class TestParsing:

    def test_csv_rows_skip_blank_lines(self, tmp_path):
        path = tmp_path / "users.csv"
        path.write_text("Name,Email\nAsha,asha@example.com\n,\nRavi,ravi@example.com\n", encoding="utf-8")

        rows = parse_tabular_upload(str(path))

        assert rows == [
            {"Name": "Asha", "Email": "asha@example.com"},
            {"Name": "Ravi", "Email": "ravi@example.com"},
        ]

    def test_xlsx_first_sheet(self, tmp_path, xlsx_bytes):
        path = tmp_path / "marks.xlsx"
        path.write_bytes(xlsx_bytes(["Email", "Algebra"], [["asha@example.com", 7]]))

        assert parse_tabular_upload(str(path)) == [{"Email": "asha@example.com", "Algebra": 7}]

    def test_corrupt_workbook(self, tmp_path):
        path = tmp_path / "broken.xlsx"
        path.write_bytes(b"not a zip file")

        with pytest.raises(InvalidInput, match="Failed to parse file"):
            parse_tabular_upload(str(path))

    def test_cell_header_lookup_is_case_insensitive(self):
        assert cell({"email ": None, "EMAIL": "  a@b.co "}, "Email") == "a@b.co"
        assert cell({"Name": "   "}, "Name") is None

    @pytest.mark.parametrize("value,expected", [
        (7, 7), ("8", 8), (9.0, 9), ("10", 10), (0, 0),
        (11, None), (-1, None), (7.5, None), ("abc", None), (None, None),
    ])
    def test_parse_mark(self, value, expected):
        assert parse_mark(value) == expected


class TestBulkCreateUsers:

    def post(self, client, headers, content, role="student", filename="users.xlsx", mime=XLSX_MIME):
        return client.post(
            "/api/admin/users/bulk-create",
            data={"role": role},
            files={"file": (filename, content, mime)},
            headers=headers
        )

    def test_bad_row_does_not_block_others(self, client, db, admin_headers, xlsx_bytes, outbox, upload_dir):
        content = xlsx_bytes(["Name", "Email"], [
            ["Asha", "asha@example.com"],
            ["Ravi", "ravi@example.com"],
            ["Broken", "not-an-email"],
            ["Meera", "meera@example.com"],
            ["John", "john@example.com"],
        ])

        response = self.post(client, admin_headers, content)

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["uploaded_count"] == 4
        assert data["failed_count"] == 1
        assert data["failed_details"] == [
            {"email": "not-an-email", "row": 3, "reason": "Missing name/email or invalid email format."}
        ]
        assert db.query(Student).count() == 4
        assert sorted(to for to, _, _ in outbox) == [
            "asha@example.com", "john@example.com", "meera@example.com", "ravi@example.com"
        ]
        assert staged_files(upload_dir) == []

    def test_rerun_is_idempotent(self, client, db, admin_headers, xlsx_bytes):
        content = xlsx_bytes(["Name", "Email"], [["Asha", "asha@example.com"], ["Ravi", "ravi@example.com"]])
        self.post(client, admin_headers, content)

        data = self.post(client, admin_headers, content).json()["data"]

        assert data["uploaded_count"] == 0
        assert data["failed_count"] == 2
        assert {row["reason"] for row in data["failed_details"]} == {"User with this email already exists."}
        assert db.query(User).filter(User.role == "student").count() == 2

    def test_credentials_email_carries_working_password(self, client, db, admin_headers, outbox, monkeypatch):
        monkeypatch.setattr(bulk_ingestion, "generate_temp_password", lambda: "Tmp9xQ2pLm")
        content = b"Name,Email\nGreen Valley,office@greenvalley.edu\n"

        response = self.post(client, admin_headers, content, role="school", filename="schools.csv", mime="text/csv")

        assert response.json()["data"]["uploaded_count"] == 1
        user = db.query(User).filter(User.email == "office@greenvalley.edu").one()
        assert user.role == "school"
        assert user.school is not None
        assert user.isOnboardingComplete is False
        [(_, _, html)] = outbox
        assert "Tmp9xQ2pLm" in html
        assert verify_password("Tmp9xQ2pLm", user.password)

    def test_undelivered_credentials_still_count(self, client, admin_headers, monkeypatch):
        monkeypatch.setattr(EmailService, "_send_email", lambda self, *args: False)

        response = self.post(client, admin_headers, b"Name,Email\nAsha,asha@example.com\n",
                             filename="users.csv", mime="text/csv")

        data = response.json()["data"]
        assert data["uploaded_count"] == 1
        assert data["failed_deliveries"] == ["asha@example.com"]

    def test_invalid_role(self, client, admin_headers, xlsx_bytes, upload_dir):
        content = xlsx_bytes(["Name", "Email"], [["Asha", "asha@example.com"]])

        response = self.post(client, admin_headers, content, role="admin")

        assert response.status_code == 400
        assert staged_files(upload_dir) == []

    def test_unreadable_file_removed_after_failure(self, client, admin_headers, upload_dir):
        response = self.post(client, admin_headers, b"garbage")

        assert response.status_code == 400
        assert response.json()["message"].startswith("Failed to parse file")
        assert staged_files(upload_dir) == []

    def test_unsupported_extension(self, client, admin_headers):
        response = self.post(client, admin_headers, b"Name,Email\n", filename="users.txt", mime="text/plain")
        assert response.status_code == 400

    def test_legacy_xls_rejected_with_explicit_message(self, client, admin_headers, upload_dir):
        response = self.post(client, admin_headers, b"\xd0\xcf\x11\xe0", filename="users.XLS",
                             mime="application/vnd.ms-excel")

        assert response.status_code == 400
        assert ".xls workbooks are not supported" in response.json()["message"]
        assert staged_files(upload_dir) == []

    def test_email_taken_mid_upload_reports_duplicate(self, client, db, admin_headers, monkeypatch):
        real_hash = bulk_ingestion.hash_password

        def hash_after_rival_signup(password):
            # Same address lands between the existence check and the insert
            db.add(User(name="Rival", email="asha@example.com", password=real_hash("x"), role="student"))
            db.commit()
            return real_hash(password)

        monkeypatch.setattr(bulk_ingestion, "hash_password", hash_after_rival_signup)

        response = self.post(client, admin_headers, b"Name,Email\nAsha,asha@example.com\n",
                             filename="users.csv", mime="text/csv")

        data = response.json()["data"]
        assert data["uploaded_count"] == 0
        [failed] = data["failed_details"]
        assert failed["reason"] == "User with this email already exists."
        assert "SQL" not in failed["reason"]
        assert "$2b$" not in failed["reason"]
        assert db.query(User).filter(User.email == "asha@example.com").count() == 1

    def test_unexpected_error_reason_is_generic(self, client, db, admin_headers, monkeypatch):
        def broken_hash(password):
            raise RuntimeError("(sqlite3.OperationalError) INSERT INTO users failed")

        monkeypatch.setattr(bulk_ingestion, "hash_password", broken_hash)

        response = self.post(client, admin_headers, b"Name,Email\nAsha,asha@example.com\nRavi,ravi@example.com\n",
                             filename="users.csv", mime="text/csv")

        data = response.json()["data"]
        assert data["failed_count"] == 2
        assert {row["reason"] for row in data["failed_details"]} == {"Processing error."}
        assert db.query(User).filter(User.role == "student").count() == 0

    def test_existing_email_matched_regardless_of_case(self, client, db, admin_headers, make_student):
        make_student(email="Asha@Example.com")

        data = self.post(client, admin_headers, b"Name,Email\nAsha,ASHA@example.COM\n",
                         filename="users.csv", mime="text/csv").json()["data"]

        assert data["uploaded_count"] == 0
        assert data["failed_details"][0]["reason"] == "User with this email already exists."
        assert db.query(User).count() == 2


class TestBulkMarksUpload:

    @pytest.fixture
    def skill(self, make_core_skill):
        return make_core_skill(name="Mathematics", subskills=["Algebra", "Geometry"])

    def post(self, client, headers, skill_id, content):
        return client.post(
            f"/api/admin/skills/{skill_id}/bulk-marks-upload",
            files={"file": ("marks.xlsx", content, XLSX_MIME)},
            headers=headers
        )

    def test_upserts_marks_per_row(self, client, db, admin_headers, skill, make_student, make_school, xlsx_bytes):
        asha = make_student(email="asha@example.com")
        make_student(email="ravi@example.com", first_name="Ravi")
        make_school(email="office@school.edu")
        content = xlsx_bytes(["Email", "Algebra", "Geometry"], [
            ["asha@example.com", 8, 7],
            ["ravi@example.com", 5, None],
            ["office@school.edu", 5, 5],
            ["ghost@example.com", 5, 5],
            ["ravi@example.com", 5, 11],
        ])

        response = self.post(client, admin_headers, skill.id, content)

        data = response.json()["data"]
        assert response.json()["message"] == (
            "Bulk upload for core skill marks completed. Successfully updated 1 student profiles."
        )
        assert data["coreSkillName"] == "Mathematics"
        assert data["uploaded_count"] == 1
        assert data["successful_updates"] == ["asha@example.com"]
        assert [row["row"] for row in data["failed_details"]] == [2, 3, 4, 5]
        assert data["failed_details"][0]["reason"].startswith("Incomplete marks")
        assert "Geometry" in data["failed_details"][0]["reason"]

        [assessment] = db.query(StudentCoreSkillAssessment).all()
        assert assessment.studentId == asha.id
        assert assessment.subSkillMarks == {"Algebra": 8, "Geometry": 7}

    def test_rerun_overwrites_existing_marks(self, client, db, admin_headers, skill, make_student, xlsx_bytes):
        make_student(email="asha@example.com")
        self.post(client, admin_headers, skill.id,
                  xlsx_bytes(["Email", "Algebra", "Geometry"], [["asha@example.com", 1, 1]]))

        response = self.post(client, admin_headers, skill.id,
                             xlsx_bytes(["Email", "Algebra", "Geometry"], [["asha@example.com", 9, 10]]))

        assert response.json()["data"]["uploaded_count"] == 1
        [assessment] = db.query(StudentCoreSkillAssessment).all()
        db.refresh(assessment)
        assert assessment.subSkillMarks == {"Algebra": 9, "Geometry": 10}

    def test_unknown_core_skill(self, client, admin_headers, xlsx_bytes, upload_dir):
        response = self.post(client, admin_headers, "missing",
                             xlsx_bytes(["Email", "Algebra"], [["asha@example.com", 1]]))

        assert response.status_code == 404
        assert staged_files(upload_dir) == []

    def test_email_lookup_ignores_case(self, client, db, admin_headers, skill, make_student, xlsx_bytes):
        asha = make_student(email="Asha@Example.com")

        response = self.post(client, admin_headers, skill.id,
                             xlsx_bytes(["Email", "Algebra", "Geometry"], [["ASHA@EXAMPLE.COM", 6, 6]]))

        assert response.json()["data"]["uploaded_count"] == 1
        assert db.query(StudentCoreSkillAssessment).one().studentId == asha.id

    def test_save_failure_reason_is_generic(self, client, db, admin_headers, skill, make_student, xlsx_bytes,
                                            monkeypatch):
        make_student(email="asha@example.com")

        def broken_save(*args):
            raise RuntimeError("(sqlite3.OperationalError) UPDATE student_core_skill_assessments failed")

        monkeypatch.setattr(bulk_ingestion, "save_marks", broken_save)

        response = self.post(client, admin_headers, skill.id,
                             xlsx_bytes(["Email", "Algebra", "Geometry"], [["asha@example.com", 6, 6]]))

        [failed] = response.json()["data"]["failed_details"]
        assert failed["reason"] == "Processing error."
        assert db.query(StudentCoreSkillAssessment).count() == 0
