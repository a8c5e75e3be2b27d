"""
Tests for application-level endpoints and attempt logs
"""

from models.log import LogModel


def test_health(client):
    resp = client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_root_lists_docs(client):
    assert client.get("/").json()["docs"]["swagger"] == "/docs"


class TestLogs:
    def test_get_log_with_relations(self, client, db, student, acme, make_challenge, auth):
        challenge = make_challenge(acme)
        log = LogModel(
            user_id=student.id, challenge_id=challenge.id, query="SELECT 1", is_correct=True
        )
        db.add(log)
        db.commit()

        resp = client.get(f"/api/logs/{log.id}", headers=auth(student))
        assert resp.status_code == 200
        body = resp.json()
        assert body["isCorrect"] is True
        assert body["user"]["email"] == student.email
        assert body["challenge"]["id"] == challenge.id

    def test_unknown_log(self, client, student, auth):
        assert client.get("/api/logs/999", headers=auth(student)).status_code == 404

    def test_requires_authentication(self, client):
        assert client.get("/api/logs/1").status_code == 401
