"""
Tests for lessons and their publish state
"""

from models.lesson import LessonModel


class TestLessons:
    def test_create_uses_creator_institution(self, client, teacher, acme, auth):
        resp = client.post(
            "/api/lessons",
            json={"title": "GROUP BY", "content": "# Grouping rows"},
            headers=auth(teacher),
        )
        assert resp.status_code == 201
        body = resp.json()
        assert body["institution_id"] == acme.id
        assert body["isPublished"] is False
        assert body["order"] == 0
        assert body["creator"] == {
            "id": teacher.id,
            "name": teacher.name,
            "isTeacher": True,
            "isAdmin": False,
        }

    def test_create_requires_title_and_content(self, client, teacher, auth):
        resp = client.post("/api/lessons", json={"title": "Empty"}, headers=auth(teacher))
        assert resp.status_code == 400

    def test_student_cannot_create(self, client, student, auth):
        resp = client.post(
            "/api/lessons", json={"title": "T", "content": "C"}, headers=auth(student)
        )
        assert resp.status_code == 403

    def test_list_order_and_published_filter(self, client, acme, teacher, make_lesson):
        make_lesson(acme, creator=teacher, title="Second", order=2, is_published=True)
        make_lesson(acme, creator=teacher, title="First", order=1, is_published=True)
        make_lesson(acme, creator=teacher, title="Draft", order=0)

        titles = [lesson["title"] for lesson in client.get("/api/lessons").json()]
        assert titles == ["Draft", "First", "Second"]

        published = client.get(f"/api/lessons?institutionId={acme.id}&published=true").json()
        assert [lesson["title"] for lesson in published] == ["First", "Second"]

    def test_publish_toggle(self, client, teacher, acme, make_lesson, auth):
        lesson = make_lesson(acme, creator=teacher)
        url = f"/api/lessons/{lesson.id}/publish"

        assert client.patch(url, headers=auth(teacher)).json()["isPublished"] is True
        assert client.patch(url, headers=auth(teacher)).json()["isPublished"] is False
        explicit = client.patch(url, json={"isPublished": True}, headers=auth(teacher))
        assert explicit.json()["isPublished"] is True

    def test_publish_leaves_content_untouched(self, client, db, teacher, acme, make_lesson, auth):
        lesson = make_lesson(acme, creator=teacher, title="Keep me", content="body")
        client.patch(f"/api/lessons/{lesson.id}/publish", headers=auth(teacher))
        stored = db.query(LessonModel).filter(LessonModel.id == lesson.id).one()
        assert (stored.title, stored.content) == ("Keep me", "body")

    def test_teacher_limited_to_own_institution(
        self, client, teacher, globex, make_lesson, auth
    ):
        foreign = make_lesson(globex)
        resp = client.put(
            f"/api/lessons/{foreign.id}",
            json={"title": "Hijack", "content": "x"},
            headers=auth(teacher),
        )
        assert resp.status_code == 403

    def test_update_and_delete(self, client, db, admin, acme, make_lesson, auth):
        lesson_id = make_lesson(acme).id
        resp = client.put(
            f"/api/lessons/{lesson_id}",
            json={"title": "Renamed", "content": "new", "order": 3},
            headers=auth(admin),
        )
        assert resp.status_code == 200
        assert resp.json()["order"] == 3

        assert client.delete(f"/api/lessons/{lesson_id}", headers=auth(admin)).status_code == 200
        assert client.get(f"/api/lessons/{lesson_id}").status_code == 404
