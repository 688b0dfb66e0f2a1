"""
test_routers_companies.py — HTTP tests for /api/companies

Company CRUD, won/lost rollups, tags, attachments and the activity log.

Called by: pytest
Depends on: bidtracker/routers/companies.py, services/company_service.py
"""

from bidtracker.models import Company, Contact


class TestCompanyCrud:
    def test_list_with_won_lost(self, client, test_bid):
        resp = client.get("/api/companies")
        assert resp.status_code == 200
        row = resp.json()[0]
        assert row["name"] == "Acme Construction"
        assert row["projects"] == [{"id": test_bid.id, "name": "Warehouse Fitout"}]
        assert row["won"] == 100
        assert row["lost"] == 0

    def test_create(self, client):
        resp = client.post("/api/companies", json={"name": "  Northwind Builders ", "phone": ""})
        assert resp.status_code == 201
        data = resp.json()
        assert data["name"] == "Northwind Builders"
        assert data["phone"] is None

    def test_duplicate_name_case_insensitive_409(self, client, test_company):
        resp = client.post("/api/companies", json={"name": "ACME construction"})
        assert resp.status_code == 409
        assert resp.json()["error"] == "Company already exists"

    def test_blank_name_400(self, client):
        assert client.post("/api/companies", json={"name": " "}).status_code == 400

    def test_unknown_account_manager_404(self, client):
        resp = client.post("/api/companies", json={"name": "Fabrikam", "accountManagerId": 999})
        assert resp.status_code == 404

    def test_detail(self, client, test_bid, test_contact):
        data = client.get(f"/api/companies/{test_bid.client_company_id}").json()
        assert [c["name"] for c in data["contacts"]] == ["Jane Roe"]
        assert data["bids"][0]["amount"] == 150
        assert data["bids"][0]["scopeStatus"] == "Pending"

    def test_get_missing_404(self, client):
        assert client.get("/api/companies/9999").status_code == 404

    def test_partial_update(self, client, test_company):
        resp = client.put(f"/api/companies/{test_company.id}", json={"address": "1 Main St"})
        assert resp.status_code == 200
        assert resp.json()["address"] == "1 Main St"
        assert resp.json()["website"] == "https://acme.example.com"

    def test_rename_to_existing_409(self, client, test_company, db_session):
        db_session.add(Company(name="Globex"))
        db_session.commit()
        resp = client.put(f"/api/companies/{test_company.id}", json={"name": "globex"})
        assert resp.status_code == 409

    def test_delete_with_bids_blocked(self, client, test_bid):
        resp = client.delete(f"/api/companies/{test_bid.client_company_id}")
        assert resp.status_code == 400
        assert "1 associated bids" in resp.json()["error"]

    def test_delete_removes_contacts(self, client, test_contact, db_session):
        resp = client.delete(f"/api/companies/{test_contact.company_id}")
        assert resp.status_code == 200
        assert resp.json() == {"ok": True}
        db_session.expire_all()
        assert db_session.query(Contact).count() == 0


class TestCompanyTags:
    def test_add_is_idempotent(self, client, test_company):
        client.post(f"/api/companies/{test_company.id}/tags", json={"name": "priority"})
        resp = client.post(f"/api/companies/{test_company.id}/tags", json={"name": "priority"})
        assert resp.status_code == 200
        assert [t["name"] for t in resp.json()] == ["priority"]

    def test_remove(self, client, test_company):
        tags = client.post(f"/api/companies/{test_company.id}/tags", json={"name": "gc"}).json()
        resp = client.delete(f"/api/companies/{test_company.id}/tags/{tags[0]['id']}")
        assert resp.status_code == 200
        assert resp.json() == []

    def test_remove_unknown_404(self, client, test_company):
        resp = client.delete(f"/api/companies/{test_company.id}/tags/999")
        assert resp.status_code == 404
        assert resp.json()["error"] == "Tag not found on company"


class TestCompanyAttachments:
    def test_upload_and_delete(self, client, test_company, upload_dir):
        resp = client.post(
            f"/api/companies/{test_company.id}/attachments",
            files={"file": ("w9.pdf", b"%PDF-1.7 test", "application/pdf")},
        )
        assert resp.status_code == 201
        att_id = resp.json()["id"]
        assert len(list(upload_dir.rglob("*.pdf"))) == 1

        resp = client.delete(f"/api/companies/{test_company.id}/attachments/{att_id}")
        assert resp.status_code == 200
        assert list(upload_dir.rglob("*.pdf")) == []

    def test_delete_wrong_company_404(self, client, test_company):
        assert client.delete(f"/api/companies/{test_company.id}/attachments/12345").status_code == 404


class TestCompanyActivity:
    def test_bid_creation_logged(self, client, test_company):
        client.post("/api/bids", json={"projectName": "Clinic", "clientCompanyId": test_company.id})
        rows = client.get(f"/api/companies/{test_company.id}/activity").json()
        assert rows[0]["activityType"] == "bid_created"

    def test_manual_entry(self, client, test_company, test_user):
        resp = client.post(
            f"/api/companies/{test_company.id}/activity",
            json={"activityType": "call", "summary": "Discussed schedule"},
        )
        assert resp.status_code == 201
        assert resp.json()["user"]["id"] == test_user.id

    def test_unknown_type_400(self, client, test_company):
        resp = client.post(
            f"/api/companies/{test_company.id}/activity",
            json={"activityType": "fax", "summary": "x"},
        )
        assert resp.status_code == 400

    def test_missing_company_404(self, client):
        assert client.get("/api/companies/9999/activity").status_code == 404
