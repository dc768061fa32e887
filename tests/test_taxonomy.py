"""
Tests for the skill taxonomy admin endpoints
"""
import pytest

from levelminds.core.errors import Conflict, InvalidInput
from levelminds.models.skill import StudentCoreSkillAssessment
from levelminds.services.taxonomy import skill_taxonomy


@pytest.fixture
def admin_headers(make_admin, auth_headers):
    return auth_headers(make_admin())


class TestCoreSkills:

    @pytest.mark.parametrize("count", [1, 4])
    def test_accepts_one_to_four_subskills(self, client, admin_headers, count):
        subskills = [f"Sub {i}" for i in range(count)]
        response = client.post("/api/admin/skills", json={"name": "Science", "subskills": subskills},
                               headers=admin_headers)

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["data"]["subskills"] == subskills

    @pytest.mark.parametrize("count", [0, 5])
    def test_rejects_subskill_count_out_of_bounds(self, client, admin_headers, count):
        subskills = [f"Sub {i}" for i in range(count)]
        response = client.post("/api/admin/skills", json={"name": "Science", "subskills": subskills},
                               headers=admin_headers)

        assert response.status_code == 400
        assert response.json()["success"] is False

    def test_rejects_duplicate_subskill_names(self, client, admin_headers):
        response = client.post("/api/admin/skills", json={"name": "Science", "subskills": ["Physics", "Physics"]},
                               headers=admin_headers)
        assert response.status_code == 400

    def test_duplicate_name_conflicts(self, client, admin_headers, make_core_skill):
        make_core_skill(name="Mathematics")
        response = client.post("/api/admin/skills", json={"name": "Mathematics", "subskills": ["Algebra"]},
                               headers=admin_headers)

        assert response.status_code == 409
        assert response.json() == {"success": False, "message": "Core skill with this name already exists."}

    def test_list_is_sorted_by_name(self, client, admin_headers, make_core_skill):
        make_core_skill(name="Science")
        make_core_skill(name="English")

        response = client.get("/api/admin/skills", headers=admin_headers)

        assert response.status_code == 200
        assert [s["name"] for s in response.json()["data"]["skills"]] == ["English", "Science"]

    def test_subskills_freeze_once_assessed(self, db, make_core_skill, make_student):
        skill = make_core_skill(subskills=["Algebra", "Geometry"])
        student = make_student()
        db.add(StudentCoreSkillAssessment(studentId=student.id, coreSkillId=skill.id,
                                          subSkillMarks={"Algebra": 5, "Geometry": 6}))
        db.commit()

        with pytest.raises(Conflict):
            skill_taxonomy.update_core_skill(db, skill.id, subskills=["Algebra", "Calculus"])

        # Renaming is still allowed
        updated = skill_taxonomy.update_core_skill(db, skill.id, name="Maths")
        assert updated.name == "Maths"
        assert updated.subSkills == ["Algebra", "Geometry"]

    def test_subskills_editable_before_assessment(self, client, admin_headers, make_core_skill):
        skill = make_core_skill(subskills=["Algebra"])

        response = client.patch(f"/api/admin/skills/{skill.id}", json={"subskills": ["Algebra", "Calculus"]},
                                headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["data"]["subskills"] == ["Algebra", "Calculus"]

    def test_update_frozen_skill_over_http_conflicts(self, client, db, admin_headers, make_core_skill, make_student):
        skill = make_core_skill(subskills=["Algebra"])
        db.add(StudentCoreSkillAssessment(studentId=make_student().id, coreSkillId=skill.id,
                                          subSkillMarks={"Algebra": 5}))
        db.commit()

        response = client.patch(f"/api/admin/skills/{skill.id}", json={"subskills": ["Calculus"]},
                                headers=admin_headers)
        assert response.status_code == 409

    def test_rename_to_blank_rejected(self, client, db, admin_headers, make_core_skill):
        skill = make_core_skill(name="Mathematics")

        response = client.patch(f"/api/admin/skills/{skill.id}", json={"name": "   "}, headers=admin_headers)

        assert response.status_code == 400
        db.refresh(skill)
        assert skill.name == "Mathematics"

    def test_rename_is_trimmed_before_uniqueness_check(self, client, admin_headers, make_core_skill):
        make_core_skill(name="Mathematics")
        science = make_core_skill(name="Science")

        response = client.patch(f"/api/admin/skills/{science.id}", json={"name": " Mathematics "},
                                headers=admin_headers)

        assert response.status_code == 409


class TestCategories:

    def test_create_with_valid_skills(self, client, admin_headers, make_core_skill):
        math = make_core_skill(name="Mathematics")
        science = make_core_skill(name="Science", subskills=["Physics"])

        response = client.post("/api/admin/categories",
                               json={"name": "STEM Teacher", "skills": [math.id, science.id]},
                               headers=admin_headers)

        assert response.status_code == 201
        assert response.json()["data"]["skills"] == [math.id, science.id]

    def test_invalid_skill_id_rejected(self, client, admin_headers, make_core_skill):
        math = make_core_skill()

        response = client.post("/api/admin/categories",
                               json={"name": "STEM Teacher", "skills": [math.id, "does-not-exist"]},
                               headers=admin_headers)

        assert response.status_code == 400
        assert response.json()["message"] == "One or more provided core skill IDs are invalid."

    def test_repeated_ids_collapse(self, db, make_core_skill):
        math = make_core_skill()
        category = skill_taxonomy.create_category(db, "Math Teacher", [math.id, math.id])
        assert category.coreSkillIds == [math.id]

    def test_duplicate_name_conflicts(self, db, make_category):
        make_category(name="MathTeacher")
        with pytest.raises(Conflict):
            skill_taxonomy.create_category(db, "MathTeacher", [])

    def test_list_includes_skill_names(self, client, admin_headers, make_core_skill, make_category):
        math = make_core_skill(name="Mathematics")
        make_category(name="MathTeacher", skills=[math])

        response = client.get("/api/admin/categories", headers=admin_headers)

        category = response.json()["data"]["categories"][0]
        assert category["skills"] == [{"id": math.id, "name": "Mathematics"}]

    def test_unknown_skill_raises_invalid_input(self, db):
        with pytest.raises(InvalidInput):
            skill_taxonomy.create_category(db, "Ghost", ["nope"])


class TestAdminAccess:

    def test_missing_token(self, client):
        response = client.get("/api/admin/skills")
        assert response.status_code == 401
        assert response.json()["success"] is False

    def test_non_admin_forbidden(self, client, make_student, auth_headers):
        student = make_student()
        response = client.get("/api/admin/skills", headers=auth_headers(student.user))
        assert response.status_code == 403
