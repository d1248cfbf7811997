"""
Tests for candidate endpoints.

Tests:
- CV upload (multipart) with storage side effects
- Listing and filtering
- Scoring and the filtered CV counter
- Deletion with stored file removal
"""

import pytest

from core.config import settings


@pytest.fixture
def acme(client, make_tenant):
    tenant = make_tenant("Acme")
    headers = tenant["headers"]
    department = client.post("/api/v1/departments", json={"name": "Engineering"}, headers=headers).json()
    position = client.post(
        "/api/v1/positions",
        json={"name": "Backend Engineer", "department_id": department["id"]},
        headers=headers,
    ).json()
    tenant["department_id"] = department["id"]
    tenant["position_id"] = position["id"]
    return tenant


@pytest.fixture
def globex(client, make_tenant):
    tenant = make_tenant("Globex")
    headers = tenant["headers"]
    department = client.post("/api/v1/departments", json={"name": "Operations"}, headers=headers).json()
    position = client.post(
        "/api/v1/positions",
        json={"name": "Operator", "department_id": department["id"]},
        headers=headers,
    ).json()
    tenant["position_id"] = position["id"]
    return tenant


def get_position(client, tenant, position_id=None):
    position_id = position_id or tenant["position_id"]
    return client.get(f"/api/v1/positions/{position_id}", headers=tenant["headers"]).json()


def score(client, tenant, *items):
    return client.post(
        "/api/v1/candidates/score",
        json={"candidates": [{"id": cid, "score": value} for cid, value in items]},
        headers=tenant["headers"],
    )


class TestUploadCandidate:
    """Test CV upload."""

    def test_upload(self, client, acme, upload_cv, storage):
        response = upload_cv(acme["headers"], acme["position_id"], "jane@mail.io")

        assert response.status_code == 201
        candidate = response.json()
        assert candidate["email"] == "jane@mail.io"
        assert candidate["domicile"] == "Jakarta"
        assert candidate["score"] == 0
        assert candidate["is_qualified"] is False
        assert candidate["cv_file"].startswith("cv_files/")
        assert candidate["cv_file"].endswith("-resume.pdf")
        assert storage.objects[candidate["cv_file"]] == b"%PDF-1.4 cv"
        assert candidate["cv_file_url"].endswith(candidate["cv_file"])
        assert get_position(client, acme)["uploaded_cv"] == 1

    def test_keys_are_unique(self, client, acme, upload_cv):
        first = upload_cv(acme["headers"], acme["position_id"], "one@mail.io").json()
        second = upload_cv(acme["headers"], acme["position_id"], "two@mail.io").json()

        assert first["cv_file"] != second["cv_file"]

    def test_duplicate_email_for_position(self, client, acme, upload_cv, storage):
        upload_cv(acme["headers"], acme["position_id"], "jane@mail.io")

        response = upload_cv(acme["headers"], acme["position_id"], "jane@mail.io")

        assert response.status_code == 409
        assert len(storage.objects) == 1
        assert get_position(client, acme)["uploaded_cv"] == 1

    def test_same_email_other_position(self, client, acme, upload_cv):
        other = client.post(
            "/api/v1/positions",
            json={"name": "Data Engineer", "department_id": acme["department_id"]},
            headers=acme["headers"],
        ).json()
        upload_cv(acme["headers"], acme["position_id"], "jane@mail.io")

        response = upload_cv(acme["headers"], other["id"], "jane@mail.io")

        assert response.status_code == 201

    def test_foreign_position(self, client, acme, globex, upload_cv, storage):
        response = upload_cv(acme["headers"], globex["position_id"], "jane@mail.io")

        assert response.status_code == 403
        assert storage.objects == {}

    def test_missing_position(self, client, acme, upload_cv, storage):
        response = upload_cv(acme["headers"], 999, "jane@mail.io")

        assert response.status_code == 404
        assert storage.objects == {}

    def test_invalid_email(self, client, acme, upload_cv):
        response = upload_cv(acme["headers"], acme["position_id"], "not-an-email")
        assert response.status_code == 422

    def test_empty_file(self, client, acme, upload_cv):
        response = upload_cv(acme["headers"], acme["position_id"], "jane@mail.io", content=b"")
        assert response.status_code == 400

    def test_file_too_large(self, client, acme, upload_cv, monkeypatch):
        monkeypatch.setattr(settings, "max_cv_size_bytes", 16)

        response = upload_cv(acme["headers"], acme["position_id"], "jane@mail.io", content=b"x" * 17)

        assert response.status_code == 413

    def test_missing_file(self, client, acme):
        response = client.post(
            "/api/v1/candidates",
            data={"name": "Jane", "email": "jane@mail.io", "position_id": str(acme["position_id"])},
            headers=acme["headers"],
        )
        assert response.status_code == 422

    def test_storage_failure(self, client, acme, upload_cv, storage):
        storage.fail_on_upload = True

        response = upload_cv(acme["headers"], acme["position_id"], "jane@mail.io")

        assert response.status_code == 502
        assert client.get("/api/v1/candidates", headers=acme["headers"]).json()["total"] == 0
        assert get_position(client, acme)["uploaded_cv"] == 0

    def test_filename_path_stripped(self, client, acme, storage):
        response = client.post(
            "/api/v1/candidates",
            data={"name": "Jane", "email": "jane@mail.io", "position_id": str(acme["position_id"])},
            files={"cv_file": ("../../etc/resume.pdf", b"%PDF", "application/pdf")},
            headers=acme["headers"],
        )

        assert response.status_code == 201
        key = response.json()["cv_file"]
        assert ".." not in key
        assert key.endswith("-resume.pdf")


class TestReadCandidates:
    """Test listing, retrieval and filtering."""

    def test_list_only_own(self, client, acme, globex, upload_cv):
        upload_cv(acme["headers"], acme["position_id"], "one@mail.io")
        upload_cv(acme["headers"], acme["position_id"], "two@mail.io")
        upload_cv(globex["headers"], globex["position_id"], "three@mail.io")

        data = client.get("/api/v1/candidates", headers=acme["headers"]).json()

        assert data["total"] == 2
        assert {c["email"] for c in data["items"]} == {"one@mail.io", "two@mail.io"}

    def test_get_foreign_candidate(self, client, acme, globex, upload_cv):
        candidate = upload_cv(globex["headers"], globex["position_id"], "three@mail.io").json()

        response = client.get(f"/api/v1/candidates/{candidate['id']}", headers=acme["headers"])

        assert response.status_code == 403

    def test_by_position(self, client, acme, upload_cv):
        other = client.post(
            "/api/v1/positions",
            json={"name": "Data Engineer", "department_id": acme["department_id"]},
            headers=acme["headers"],
        ).json()
        upload_cv(acme["headers"], acme["position_id"], "one@mail.io")
        upload_cv(acme["headers"], other["id"], "two@mail.io")

        data = client.get(
            f"/api/v1/candidates/by-position/{other['id']}", headers=acme["headers"]
        ).json()

        assert [c["email"] for c in data["items"]] == ["two@mail.io"]

    def test_by_foreign_position(self, client, acme, globex):
        response = client.get(
            f"/api/v1/candidates/by-position/{globex['position_id']}", headers=acme["headers"]
        )
        assert response.status_code == 403

    def test_filter_by_archive_state(self, client, acme, upload_cv):
        archived = client.post(
            "/api/v1/positions",
            json={"name": "Legacy Engineer", "department_id": acme["department_id"]},
            headers=acme["headers"],
        ).json()
        client.post(f"/api/v1/positions/{archived['id']}/archive", headers=acme["headers"])
        upload_cv(acme["headers"], acme["position_id"], "active@mail.io")
        upload_cv(acme["headers"], archived["id"], "old@mail.io")

        active = client.post(
            "/api/v1/candidates/filter",
            json={"department_id": acme["department_id"]},
            headers=acme["headers"],
        ).json()
        old = client.post(
            "/api/v1/candidates/filter",
            json={"department_id": acme["department_id"], "archived": True},
            headers=acme["headers"],
        ).json()

        assert [c["email"] for c in active["items"]] == ["active@mail.io"]
        assert [c["email"] for c in old["items"]] == ["old@mail.io"]

    def test_filter_foreign_department_is_empty(self, client, acme, globex, upload_cv):
        upload_cv(globex["headers"], globex["position_id"], "three@mail.io")
        department_id = client.get(
            f"/api/v1/positions/{globex['position_id']}", headers=globex["headers"]
        ).json()["department_id"]

        data = client.post(
            "/api/v1/candidates/filter",
            json={"department_id": department_id},
            headers=acme["headers"],
        ).json()

        assert data["total"] == 0


class TestUpdateCandidate:
    """Test editing candidate details."""

    def test_update(self, client, acme, upload_cv):
        candidate = upload_cv(acme["headers"], acme["position_id"], "jane@mail.io").json()

        response = client.put(
            f"/api/v1/candidates/{candidate['id']}",
            json={"name": "Jane Q. Doe", "domicile": "Bandung"},
            headers=acme["headers"],
        )

        assert response.status_code == 200
        assert response.json()["name"] == "Jane Q. Doe"
        assert response.json()["domicile"] == "Bandung"
        assert response.json()["email"] == "jane@mail.io"

    def test_email_conflict(self, client, acme, upload_cv):
        upload_cv(acme["headers"], acme["position_id"], "jane@mail.io")
        other = upload_cv(acme["headers"], acme["position_id"], "john@mail.io").json()

        response = client.put(
            f"/api/v1/candidates/{other['id']}",
            json={"email": "jane@mail.io"},
            headers=acme["headers"],
        )

        assert response.status_code == 409


class TestScoring:
    """Test scoring and the filtered CV counter."""

    def test_counter_transitions(self, client, acme, upload_cv):
        first = upload_cv(acme["headers"], acme["position_id"], "one@mail.io").json()
        second = upload_cv(acme["headers"], acme["position_id"], "two@mail.io").json()

        response = score(client, acme, (first["id"], 7.5), (second["id"], 0))
        assert response.status_code == 200
        assert [c["score"] for c in response.json()] == [7.5, 0]
        assert get_position(client, acme)["filtered_cv"] == 1

        score(client, acme, (first["id"], 9.0))
        assert get_position(client, acme)["filtered_cv"] == 1

        score(client, acme, (second["id"], 4.0))
        assert get_position(client, acme)["filtered_cv"] == 2

        score(client, acme, (first["id"], 0))
        assert get_position(client, acme)["filtered_cv"] == 1

    def test_skills_stored(self, client, acme, upload_cv):
        candidate = upload_cv(acme["headers"], acme["position_id"], "one@mail.io").json()

        response = client.post(
            "/api/v1/candidates/score",
            json={"candidates": [{"id": candidate["id"], "score": 6, "skills": "python, sql"}]},
            headers=acme["headers"],
        )

        assert response.json()[0]["skills"] == "python, sql"

    def test_batch_with_foreign_candidate_changes_nothing(self, client, acme, globex, upload_cv):
        own = upload_cv(acme["headers"], acme["position_id"], "one@mail.io").json()
        foreign = upload_cv(globex["headers"], globex["position_id"], "two@mail.io").json()

        response = score(client, acme, (own["id"], 8.0), (foreign["id"], 8.0))

        assert response.status_code == 403
        current = client.get(f"/api/v1/candidates/{own['id']}", headers=acme["headers"]).json()
        assert current["score"] == 0
        assert get_position(client, acme)["filtered_cv"] == 0

    def test_negative_score_rejected(self, client, acme, upload_cv):
        candidate = upload_cv(acme["headers"], acme["position_id"], "one@mail.io").json()
        assert score(client, acme, (candidate["id"], -1)).status_code == 422

    def test_toggle_qualified(self, client, acme, upload_cv):
        first = upload_cv(acme["headers"], acme["position_id"], "one@mail.io").json()
        second = upload_cv(acme["headers"], acme["position_id"], "two@mail.io").json()

        response = client.post(
            "/api/v1/candidates/qualify",
            json={"ids": [first["id"], second["id"]]},
            headers=acme["headers"],
        )

        assert [c["is_qualified"] for c in response.json()] == [True, True]
        again = client.post(
            "/api/v1/candidates/qualify", json={"ids": [first["id"]]}, headers=acme["headers"]
        ).json()
        assert again[0]["is_qualified"] is False


class TestDeleteCandidates:
    """Test candidate deletion."""

    def test_delete(self, client, acme, upload_cv, storage):
        candidate = upload_cv(acme["headers"], acme["position_id"], "one@mail.io").json()
        score(client, acme, (candidate["id"], 8.0))

        response = client.delete(f"/api/v1/candidates/{candidate['id']}", headers=acme["headers"])

        assert response.status_code == 200
        assert response.json()["rows_deleted"] == 1
        assert response.json()["artifacts_deleted"] == 1
        assert candidate["cv_file"] not in storage.objects
        position = get_position(client, acme)
        assert position["uploaded_cv"] == 0
        assert position["filtered_cv"] == 0

    def test_delete_storage_failure_keeps_candidate(self, client, acme, upload_cv, storage):
        candidate = upload_cv(acme["headers"], acme["position_id"], "one@mail.io").json()
        storage.fail_on_delete.add(candidate["cv_file"])

        response = client.delete(f"/api/v1/candidates/{candidate['id']}", headers=acme["headers"])

        assert response.status_code == 502
        assert client.get(f"/api/v1/candidates/{candidate['id']}", headers=acme["headers"]).status_code == 200

    def test_bulk_delete(self, client, acme, upload_cv, storage):
        ids = [
            upload_cv(acme["headers"], acme["position_id"], f"dev{i}@mail.io").json()["id"]
            for i in range(3)
        ]

        response = client.post(
            "/api/v1/candidates/bulk-delete", json={"ids": ids[:2]}, headers=acme["headers"]
        )

        assert response.status_code == 200
        assert response.json()["rows_deleted"] == 2
        assert len(storage.objects) == 1
        assert get_position(client, acme)["uploaded_cv"] == 1

    def test_bulk_delete_foreign_candidate(self, client, acme, globex, upload_cv, storage):
        own = upload_cv(acme["headers"], acme["position_id"], "one@mail.io").json()
        foreign = upload_cv(globex["headers"], globex["position_id"], "two@mail.io").json()

        response = client.post(
            "/api/v1/candidates/bulk-delete",
            json={"ids": [own["id"], foreign["id"]]},
            headers=acme["headers"],
        )

        assert response.status_code == 403
        assert len(storage.objects) == 2
