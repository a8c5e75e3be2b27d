"""
Tests for user administration and bulk import
"""

import pytest

from core.exceptions import ValidationError
from models.lesson import LessonModel
from models.log import LogModel
from models.user import UserModel
from schemas.user import ImportedUserRow, Role


# ============================================================================
# LISTING
# ============================================================================


class TestListUsers:
    def test_pagination(self, client, admin, acme, make_user, auth):
        for i in range(5):
            make_user(f"kid{i}@stu.acme.edu", institution=acme, name=f"Kid {i}")

        body = client.get("/api/users?page=2&limit=2", headers=auth(admin)).json()
        assert [user["name"] for user in body["users"]] == ["Kid 2", "Kid 3"]
        assert body["pagination"] == {
            "page": 2,
            "limit": 2,
            "totalUsers": 6,
            "totalPages": 3,
            "hasNextPage": True,
            "hasPrevPage": True,
        }

    def test_filters(self, client, admin, teacher, student, globex, make_user, auth):
        make_user("bob@students.globex.org", institution=globex, name="Bob")
        headers = auth(admin)

        teachers = client.get("/api/users?role=teacher", headers=headers).json()
        assert [user["email"] for user in teachers["users"]] == [teacher.email]

        search = client.get("/api/users?search=globex", headers=headers).json()
        assert [user["name"] for user in search["users"]] == ["Bob"]

        by_institution = client.get(
            f"/api/users?institution={globex.id}", headers=headers
        ).json()
        assert by_institution["pagination"]["totalUsers"] == 1

        everyone = client.get("/api/users?institution=all", headers=headers).json()
        assert everyone["pagination"]["totalUsers"] == 4

    def test_search_wildcards_are_literal(self, client, admin, acme, make_user, auth):
        make_user("pct@stu.acme.edu", institution=acme, name="100% Sure")
        headers = auth(admin)

        percent = client.get("/api/users?search=%25", headers=headers).json()
        assert [user["name"] for user in percent["users"]] == ["100% Sure"]

        underscore = client.get("/api/users?search=_", headers=headers).json()
        assert underscore["users"] == []

    def test_students_cannot_list(self, client, student, auth):
        assert client.get("/api/users", headers=auth(student)).status_code == 403


# ============================================================================
# CREATE / UPDATE / DELETE
# ============================================================================


class TestManageUsers:
    def test_admin_created_user_is_verified(self, client, admin, acme, auth):
        resp = client.post(
            "/api/users",
            json={
                "name": "New Teacher",
                "email": "New@acme.edu",
                "password": "secret",
                "role": "teacher",
                "institution_id": acme.id,
            },
            headers=auth(admin),
        )
        assert resp.status_code == 201
        body = resp.json()
        assert body["email"] == "new@acme.edu"
        assert body["isEmailVerified"] is True
        assert body["isTeacher"] is True

        login = client.post(
            "/api/auth/login", json={"email": "new@acme.edu", "password": "secret"}
        )
        assert login.status_code == 200

    def test_duplicate_email(self, client, admin, student, auth):
        resp = client.post(
            "/api/users",
            json={"name": "Copy", "email": student.email, "password": "pw"},
            headers=auth(admin),
        )
        assert resp.status_code == 400

    def test_self_update_name_only(self, client, student, auth):
        resp = client.put(
            f"/api/users/{student.id}",
            json={"name": "Janet", "alias": "jj"},
            headers=auth(student),
        )
        assert resp.status_code == 200
        assert resp.json()["name"] == "Janet"
        assert resp.json()["alias"] == "jj"

        promote = client.put(
            f"/api/users/{student.id}", json={"role": "admin"}, headers=auth(student)
        )
        assert promote.status_code == 403

    def test_cannot_update_someone_else(self, client, student, teacher, auth):
        resp = client.put(
            f"/api/users/{teacher.id}", json={"name": "Hacked"}, headers=auth(student)
        )
        assert resp.status_code == 403

    def test_admin_changes_role_and_institution(
        self, client, admin, student, globex, auth
    ):
        resp = client.put(
            f"/api/users/{student.id}",
            json={"role": "teacher", "institution_id": globex.id},
            headers=auth(admin),
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["role"] == "teacher"
        assert body["institution"]["name"] == "Globex College"

    def test_delete_keeps_authored_lessons(
        self, client, db, admin, teacher, acme, make_challenge, make_lesson, auth
    ):
        teacher_id = teacher.id
        lesson_id = make_lesson(acme, creator=teacher).id
        challenge = make_challenge(acme)
        db.add(LogModel(user_id=teacher_id, challenge_id=challenge.id, query="SELECT 1"))
        db.commit()

        resp = client.delete(f"/api/users/{teacher_id}", headers=auth(admin))
        assert resp.status_code == 200
        assert db.query(UserModel).filter(UserModel.id == teacher_id).count() == 0
        assert db.query(LogModel).count() == 0
        stored = db.query(LessonModel).filter(LessonModel.id == lesson_id).one()
        assert stored.creator_id is None

    def test_bulk_delete(self, client, db, admin, acme, make_user, auth):
        ids = [make_user(f"k{i}@stu.acme.edu", institution=acme).id for i in range(3)]

        missing = client.request(
            "DELETE", "/api/users/bulk-delete", json={"userIds": ids + [999]}, headers=auth(admin)
        )
        assert missing.status_code == 404
        assert db.query(UserModel).filter(UserModel.id.in_(ids)).count() == 3

        resp = client.request(
            "DELETE", "/api/users/bulk-delete", json={"userIds": ids}, headers=auth(admin)
        )
        assert resp.status_code == 200
        assert resp.json()["deletedCount"] == 3

        empty = client.request(
            "DELETE", "/api/users/bulk-delete", json={"userIds": []}, headers=auth(admin)
        )
        assert empty.status_code == 400


# ============================================================================
# IMPORT
# ============================================================================


CSV_CONTENT = (
    "Name,Alias,Email,Role\n"
    "Ada Lovelace,ada,ada@stu.acme.edu,student\n"
    "Alan Turing,,alan@acme.edu,teacher\n"
    ",ghost,ghost@stu.acme.edu,\n"
).encode("utf-8")


class TestImport:
    def test_parse_csv(self, users):
        rows = users.parse_import_file("people.csv", CSV_CONTENT)
        assert [(row.name, row.alias, row.role) for row in rows] == [
            ("Ada Lovelace", "ada", Role.STUDENT),
            ("Alan Turing", None, Role.TEACHER),
        ]

    def test_extra_cells_ignored(self, users):
        content = b"name,email\nAlice,alice@stu.acme.edu,extra\nBob\n"
        rows = users.parse_import_file("people.csv", content)
        assert [(row.name, row.email) for row in rows] == [
            ("Alice", "alice@stu.acme.edu"),
            ("Bob", None),
        ]

    def test_parse_legacy_flag_columns(self, users):
        content = b"name,email,isAdmin,isTeacher\nRoot,root@x.io,true,false\n"
        assert users.parse_import_file("legacy.csv", content)[0].role == Role.ADMIN

    def test_excel_accepted_without_rows(self, users):
        assert users.parse_import_file("people.xlsx", b"PK\x03\x04") == []

    def test_unsupported_type(self, users):
        with pytest.raises(ValidationError):
            users.parse_import_file("people.txt", b"name\nAda\n")

    def test_parse_api(self, client, admin, auth):
        resp = client.post(
            "/api/users/parse-import",
            files={"file": ("people.csv", CSV_CONTENT, "text/csv")},
            headers=auth(admin),
        )
        assert resp.status_code == 200
        assert [row["email"] for row in resp.json()["users"]] == [
            "ada@stu.acme.edu",
            "alan@acme.edu",
        ]

        ragged = client.post(
            "/api/users/parse-import",
            files={"file": ("ragged.csv", b"name,email\nAlice,alice@stu.acme.edu,extra\n", "text/csv")},
            headers=auth(admin),
        )
        assert ragged.status_code == 200
        assert ragged.json()["users"][0]["name"] == "Alice"

        bad = client.post(
            "/api/users/parse-import",
            files={"file": ("people.pdf", b"%PDF", "application/pdf")},
            headers=auth(admin),
        )
        assert bad.status_code == 400

    def test_bulk_import(self, users, db, acme, student):
        rows = [
            ImportedUserRow(name="Ada", email="ada@stu.acme.edu"),
            ImportedUserRow(name="Jane Again", email=student.email),
            ImportedUserRow(name="No Email"),
            ImportedUserRow(name="Ada Twin", email="ADA@stu.acme.edu"),
        ]
        assert users.bulk_import(rows) == 1

        ada = db.query(UserModel).filter(UserModel.email == "ada@stu.acme.edu").one()
        assert ada.institution_id == acme.id
        assert ada.is_email_verified is True
        assert users.verify_password("defaultpassword123", ada.password_hash)

    def test_bulk_import_api(self, client, admin, globex, auth):
        resp = client.post(
            "/api/users/bulk",
            json={
                "users": [
                    {"name": "Ada", "email": "ada@anywhere.io", "role": "teacher"},
                    {"name": "Alan", "email": "alan@anywhere.io"},
                ],
                "institution_id": globex.id,
            },
            headers=auth(admin),
        )
        assert resp.status_code == 200
        assert resp.json()["importedCount"] == 2
        assert resp.json()["totalUsers"] == 2

    def test_bulk_import_requires_rows(self, client, admin, auth):
        resp = client.post("/api/users/bulk", json={"users": []}, headers=auth(admin))
        assert resp.status_code == 400
