"""
test_services_import.py — Tests for bulk bid import (CSV/TSV/XLSX)

Called by: pytest
Depends on: bidtracker/services/import_service.py, file_utils.py
"""

import io
from datetime import date

import openpyxl
import pytest

from bidtracker.errors import ValidationError
from bidtracker.models import Bid, Company, Contact
from bidtracker.services.access_policy import STANDARD_POLICY
from bidtracker.services.import_service import group_rows, import_bids

POLICY = STANDARD_POLICY

CSV = (
    "projectName,clientCompany,contactName,proposalDate,bidStatus,scopeName,scopeCost,scopeStatus\n"
    "Harbor Pier,Oceanic Ltd,Ann Lee,05/02/2025,Hot,Piling,\"1,000\",won\n"
    "Harbor Pier,Oceanic Ltd,Ann Lee,05/02/2025,Hot,Decking,250,\n"
    "Rail Depot,Acme Construction,,2025-03-01,,Signals,80,Lost\n"
    ",Orphan Co,,,,Anything,5,\n"
).encode()


class TestGroupRows:
    def test_groups_by_project_and_company(self):
        rows = [
            {"projectname": "P", "clientcompany": "C", "scopename": "a"},
            {"projectname": "P", "clientcompany": "C", "scopename": "b"},
            {"projectname": "P", "clientcompany": "D", "scopename": "c"},
        ]
        groups = group_rows(rows)
        assert list(groups) == ["P||C", "P||D"]
        assert [s["name"] for s in groups["P||C"]["scopes"]] == ["a", "b"]

    def test_header_fallbacks(self):
        groups = group_rows([{"project": "P", "company": "C", "scope": "Paint", "cost": "9", "status": "Hot"}])
        g = groups["P||C"]
        assert g["bid_status"] == "Hot"
        assert g["scopes"] == [{"name": "Paint", "cost": "9", "status": ""}]

    def test_rows_missing_keys_skipped(self):
        assert group_rows([{"projectname": "P"}, {"clientcompany": "C"}]) == {}


class TestImportBids:
    def test_csv_import(self, db_session, test_company, test_user):
        result = import_bids(db_session, test_user, POLICY, CSV, "bids.csv")
        assert result == {"imported": 2, "errors": []}

        pier = db_session.query(Bid).filter_by(project_name="Harbor Pier").one()
        assert pier.client_company.name == "Oceanic Ltd"
        assert pier.contact.name == "Ann Lee"
        assert pier.proposal_date == date(2025, 2, 5)
        assert pier.bid_status == "Hot"
        assert pier.owner_id == test_user.id
        assert [(s.name, s.cost, s.status) for s in pier.scopes] == [
            ("Piling", 1000, "Won"),
            ("Decking", 250, "Pending"),
        ]

    def test_existing_company_reused_case_insensitively(self, db_session, test_company, test_user):
        csv = b"project,company,scope\nGym,ACME CONSTRUCTION,Floor\n"
        import_bids(db_session, test_user, POLICY, csv, "x.csv")
        assert db_session.query(Company).count() == 1
        assert db_session.query(Bid).one().client_company_id == test_company.id

    def test_contact_found_not_duplicated(self, db_session, test_contact, test_user):
        csv = b"project,company,contact\nA,Acme Construction,Jane Roe\nB,Acme Construction,Jane Roe\n"
        assert import_bids(db_session, test_user, POLICY, csv, "x.csv")["imported"] == 2
        assert db_session.query(Contact).count() == 1

    def test_estimator_matched_by_email(self, db_session, test_user, manager_user):
        csv = f"project,company,estimatorEmail\nA,Acme,{manager_user.email.upper()}\n".encode()
        import_bids(db_session, test_user, POLICY, csv, "x.csv")
        assert db_session.query(Bid).one().estimator_id == manager_user.id

    def test_bad_group_reported_others_imported(self, db_session, test_user):
        csv = b"project,company,status\nGood,Acme,Active\nBad,Acme,Exploded\n"
        result = import_bids(db_session, test_user, POLICY, csv, "x.csv")
        assert result["imported"] == 1
        assert result["errors"] == [{"key": "Bad||Acme", "message": "Unknown bid status: Exploded"}]
        assert [b.project_name for b in db_session.query(Bid).all()] == ["Good"]

    def test_tsv(self, db_session, test_user):
        tsv = b"projectName\tclientCompany\tscopeName\tscopeCost\nDock\tPort Authority\tCrane\t12\n"
        assert import_bids(db_session, test_user, POLICY, tsv, "x.tsv")["imported"] == 1

    def test_xlsx(self, db_session, test_user):
        wb = openpyxl.Workbook()
        ws = wb.active
        ws.append(["projectName", "clientCompany", "dueDate", "scopeName", "scopeCost"])
        ws.append(["Bridge", "Metro DOT", date(2025, 9, 30), "Rebar", 1500])
        ws.append([None, None, None, None, None])
        buf = io.BytesIO()
        wb.save(buf)

        result = import_bids(db_session, test_user, POLICY, buf.getvalue(), "bids.xlsx")
        assert result["imported"] == 1
        bid = db_session.query(Bid).one()
        assert bid.due_date == date(2025, 9, 30)
        assert bid.scopes[0].cost == 1500

    def test_unsupported_extension(self, db_session, test_user):
        with pytest.raises(ValidationError):
            import_bids(db_session, test_user, POLICY, b"data", "bids.pdf")

    def test_empty_file(self, db_session, test_user):
        with pytest.raises(ValidationError):
            import_bids(db_session, test_user, POLICY, b"", "bids.csv")


class TestImportRouter:
    def test_upload(self, client):
        resp = client.post("/api/import/bids", files={"file": ("bids.csv", CSV, "text/csv")})
        assert resp.status_code == 200
        assert resp.json()["imported"] == 2

    def test_bad_type_400(self, client):
        resp = client.post("/api/import/bids", files={"file": ("bids.doc", b"x", "application/msword")})
        assert resp.status_code == 400
