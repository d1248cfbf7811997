"""
Integration tests for tenant isolation.

Tests end-to-end scenarios:
- Two companies working side by side
- Every cross-tenant read, write and delete is refused
- Deleting one tenant leaves the other untouched
"""

import pytest


@pytest.fixture
def two_tenants(client, make_tenant, upload_cv):
    """Each tenant gets one department, one position and one candidate."""
    tenants = {}
    for name in ("Acme", "Globex"):
        tenant = make_tenant(name)
        headers = tenant["headers"]
        department = client.post(
            "/api/v1/departments", json={"name": "Engineering"}, headers=headers
        ).json()
        position = client.post(
            "/api/v1/positions",
            json={"name": "Backend Engineer", "department_id": department["id"]},
            headers=headers,
        ).json()
        candidate = upload_cv(headers, position["id"], f"applicant@{name.lower()}-mail.io").json()
        tenant.update(
            department_id=department["id"],
            position_id=position["id"],
            candidate_id=candidate["id"],
        )
        tenants[name] = tenant
    return tenants["Acme"], tenants["Globex"]


class TestCrossTenantAccess:
    """Acme's token must never reach Globex data."""

    def test_reads_denied(self, client, two_tenants):
        acme, globex = two_tenants
        urls = [
            f"/api/v1/companies/{globex['company_id']}",
            f"/api/v1/departments/{globex['department_id']}",
            f"/api/v1/positions/{globex['position_id']}",
            f"/api/v1/candidates/{globex['candidate_id']}",
            f"/api/v1/candidates/by-position/{globex['position_id']}",
        ]
        for url in urls:
            response = client.get(url, headers=acme["headers"])
            assert response.status_code == 403, url

    def test_writes_denied(self, client, two_tenants):
        acme, globex = two_tenants
        headers = acme["headers"]

        assert client.put(
            f"/api/v1/departments/{globex['department_id']}", json={"name": "Mine"}, headers=headers
        ).status_code == 403
        assert client.put(
            f"/api/v1/positions/{globex['position_id']}", json={"name": "Mine"}, headers=headers
        ).status_code == 403
        assert client.post(
            f"/api/v1/positions/{globex['position_id']}/archive", headers=headers
        ).status_code == 403
        assert client.put(
            f"/api/v1/candidates/{globex['candidate_id']}", json={"name": "Mine"}, headers=headers
        ).status_code == 403
        assert client.post(
            "/api/v1/candidates/score",
            json={"candidates": [{"id": globex["candidate_id"], "score": 10}]},
            headers=headers,
        ).status_code == 403

    def test_deletes_denied(self, client, two_tenants, storage):
        acme, globex = two_tenants
        headers = acme["headers"]

        for url in (
            f"/api/v1/candidates/{globex['candidate_id']}",
            f"/api/v1/positions/{globex['position_id']}",
            f"/api/v1/departments/{globex['department_id']}",
            f"/api/v1/companies/{globex['company_id']}",
        ):
            assert client.delete(url, headers=headers).status_code == 403, url

        assert len(storage.objects) == 2
        candidate = client.get(
            f"/api/v1/candidates/{globex['candidate_id']}", headers=globex["headers"]
        )
        assert candidate.status_code == 200

    def test_listings_are_scoped(self, client, two_tenants):
        acme, _ = two_tenants
        for resource in ("departments", "positions", "candidates", "users"):
            data = client.get(f"/api/v1/{resource}", headers=acme["headers"]).json()
            assert data["total"] == 1, resource


class TestUnauthenticated:
    """Requests without a token are rejected before any handler runs."""

    @pytest.mark.parametrize(
        "method,url",
        [
            ("get", "/api/v1/departments"),
            ("get", "/api/v1/positions/1"),
            ("delete", "/api/v1/companies/1"),
            ("get", "/api/v1/candidates"),
            ("get", "/api/v1/users/me"),
        ],
    )
    def test_rejected(self, client, method, url):
        response = getattr(client, method)(url)
        assert response.status_code == 401


class TestTenantDeletion:
    """Deleting one tenant removes its whole tree only."""

    def test_delete_one_tenant(self, client, two_tenants, storage):
        acme, globex = two_tenants

        response = client.delete(f"/api/v1/companies/{acme['company_id']}", headers=acme["headers"])

        assert response.status_code == 200
        assert response.json()["rows_deleted"] == 4
        assert response.json()["artifacts_deleted"] == 1
        assert len(storage.objects) == 1

        for resource in ("departments", "positions", "candidates"):
            data = client.get(f"/api/v1/{resource}", headers=globex["headers"]).json()
            assert data["total"] == 1, resource

        # Acme's token still names the deleted company
        assert client.get(
            f"/api/v1/departments/{acme['department_id']}", headers=acme["headers"]
        ).status_code == 404


class TestRecruitmentFlow:
    """A complete hiring round in one company."""

    def test_full_flow(self, client, make_tenant, upload_cv):
        acme = make_tenant("Acme")
        headers = acme["headers"]

        department = client.post("/api/v1/departments", json={"name": "Data"}, headers=headers).json()
        position = client.post(
            "/api/v1/positions",
            json={
                "name": "Data Scientist",
                "department_id": department["id"],
                "min_work_exp": 2,
                "qualification": "Python, statistics",
            },
            headers=headers,
        ).json()

        ids = [
            upload_cv(headers, position["id"], f"applicant{i}@mail.io").json()["id"]
            for i in range(3)
        ]
        client.post(
            "/api/v1/candidates/score",
            json={"candidates": [
                {"id": ids[0], "score": 8.0, "skills": "python, pandas"},
                {"id": ids[1], "score": 0},
                {"id": ids[2], "score": 6.5, "skills": "r, statistics"},
            ]},
            headers=headers,
        )
        client.put(
            f"/api/v1/positions/{position['id']}/qualified-candidates",
            json={"qualified_candidates": "applicant0, applicant2"},
            headers=headers,
        )
        client.post(f"/api/v1/positions/{position['id']}/resolve", headers=headers)

        current = client.get(f"/api/v1/positions/{position['id']}", headers=headers).json()
        assert current["uploaded_cv"] == 3
        assert current["filtered_cv"] == 2
        assert current["is_resolved"] is True
        assert current["qualified_candidates"] == "applicant0, applicant2"

        client.post(f"/api/v1/positions/{position['id']}/archive", headers=headers)
        archived = client.post(
            "/api/v1/candidates/filter",
            json={"position_id": position["id"], "archived": True},
            headers=headers,
        ).json()
        assert archived["total"] == 3
