"""
HTTP API tests.

Sales data is read from CSV exports written into a per-test POS_EXPORT_DIR.
"""

from datetime import date

from backoffice.services.sales_data_service import FULFILLED_ORDER_STATUS

from conftest import write_pos_export


DAY = date(2026, 10, 19)


def _stock_payload(**overrides):
    payload = {
        "location_id": "cabildo",
        "location_name": "Cabildo",
        "date": "2026-10-19",
        "shift": "morning",
        "responsible": "Ana",
        "empanadas_real": 40,
        "empanadas_pos": 50,
    }
    payload.update(overrides)
    return payload


def _closing_payload(**overrides):
    payload = {
        "location_id": "cabildo",
        "location_name": "Cabildo",
        "date": "2026-10-19",
        "shift": "morning",
        "responsible": "Ana",
        "cash_cents": 0,
    }
    payload.update(overrides)
    return payload


def _write_voided_day(directory):
    write_pos_export(str(directory), 1, DAY, orders=[(1, 3)], lines=[(1, 101, 10, "8000")])


def _write_empanada_day(directory, quantity=10):
    write_pos_export(
        str(directory), 1, DAY,
        orders=[(1, FULFILLED_ORDER_STATUS)],
        lines=[(1, 101, quantity, f"{quantity * 800}")],
    )


# =============================================================================
# HEALTH
# =============================================================================

def test_health(client, db_session, pos_export_dir):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json["status"] == "healthy"
    assert response.json["checks"]["database"]["details"]["stock_records"] == 0


def test_health_degraded_without_export_dir(app, client, db_session, monkeypatch):
    monkeypatch.setitem(app.config, "POS_EXPORT_DIR", "/nonexistent/pos")

    response = client.get("/health")

    assert response.status_code == 200
    assert response.json["status"] == "degraded"


# =============================================================================
# STOCK RECORDS
# =============================================================================

def test_create_stock_record(client, db_session):
    response = client.post("/api/stock-records", json=_stock_payload())

    assert response.status_code == 201
    body = response.json
    assert body["stock_record"]["empanadas_real"] == 40
    assert body["stock_record"]["pizzas_pos"] == 0
    assert [a["category"] for a in body["stock_alerts"]] == ["empanadas"]


def test_create_stock_record_validation(client, db_session):
    assert client.post("/api/stock-records", json=_stock_payload(shift="night")).status_code == 400
    assert client.post("/api/stock-records", json=_stock_payload(empanadas_real=1.5)).status_code == 400
    assert client.post("/api/stock-records", json=_stock_payload(id=5)).status_code == 400

    payload = _stock_payload()
    del payload["responsible"]
    response = client.post("/api/stock-records", json=payload)
    assert response.status_code == 400
    assert "responsible" in response.json["error"]


def test_list_and_get_stock_record(client, db_session):
    record_id = client.post("/api/stock-records", json=_stock_payload()).json["stock_record"]["id"]
    client.post("/api/cash-closings", json=_closing_payload())

    listing = client.get("/api/stock-records?location_id=cabildo&date=2026-10-19")
    assert listing.json["count"] == 1

    detail = client.get(f"/api/stock-records/{record_id}")
    assert detail.status_code == 200
    assert detail.json["cash_register_closing"]["shift"] == "morning"
    assert detail.json["stock_cash_alert"] is None
    empanadas = next(d for d in detail.json["differences"] if d["category"] == "empanadas")
    assert empanadas["difference"] == -10

    assert client.get("/api/stock-records/999").status_code == 404
    assert client.get("/api/stock-records?date=yesterday").status_code == 400


def test_patch_stock_record(client, db_session):
    record_id = client.post("/api/stock-records", json=_stock_payload()).json["stock_record"]["id"]

    response = client.patch(f"/api/stock-records/{record_id}", json={"empanadas_real": 50, "changed_by": "Ana"})
    assert response.status_code == 200
    assert response.json["stock_record"]["empanadas_real"] == 50

    assert client.patch(f"/api/stock-records/{record_id}", json={"shift": "afternoon"}).status_code == 400
    assert client.patch("/api/stock-records/999", json={"notes": "x"}).status_code == 404


def test_compare_from_stock_record(client, db_session, pos_export_dir):
    _write_voided_day(pos_export_dir)
    record_id = client.post("/api/stock-records", json=_stock_payload()).json["stock_record"]["id"]

    assert client.post(f"/api/stock-records/{record_id}/compare").status_code == 404

    client.post("/api/cash-closings", json=_closing_payload())

    created = client.post(f"/api/stock-records/{record_id}/compare")
    assert created.status_code == 201
    assert created.json["alert_created"] is True
    assert created.json["stock_cash_alert"]["difference_cents"] == -800000

    again = client.post(f"/api/stock-records/{record_id}/compare")
    assert again.status_code == 200
    assert again.json["alert_created"] is False
    assert again.json["stock_cash_alert"]["id"] == created.json["stock_cash_alert"]["id"]

    locked = client.patch(f"/api/stock-records/{record_id}", json={"notes": "recount"})
    assert locked.status_code == 409


# =============================================================================
# CASH CLOSINGS
# =============================================================================

def test_cash_closing_crud(client, db_session):
    response = client.post("/api/cash-closings", json=_closing_payload(cash_cents=100000, card_cents=25000))
    assert response.status_code == 201
    closing = response.json["cash_register_closing"]
    assert closing["total_cents"] == 125000

    assert client.get(f"/api/cash-closings/{closing['id']}").status_code == 200
    assert client.get("/api/cash-closings?shift=morning").json["count"] == 1

    patched = client.patch(f"/api/cash-closings/{closing['id']}", json={"cash_cents": 200000})
    assert patched.json["cash_register_closing"]["total_cents"] == 225000

    assert client.post("/api/cash-closings", json=_closing_payload(cash_cents=-5)).status_code == 400
    assert client.patch(f"/api/cash-closings/{closing['id']}", json={"date": "2026-10-20"}).status_code == 400
    assert client.get("/api/cash-closings/999").status_code == 404


# =============================================================================
# RECONCILIATION
# =============================================================================

def test_reconciliation_compare(client, db_session, pos_export_dir):
    _write_empanada_day(pos_export_dir)
    record_id = client.post("/api/stock-records", json=_stock_payload()).json["stock_record"]["id"]
    closing_id = client.post(
        "/api/cash-closings", json=_closing_payload(cash_cents=800000)
    ).json["cash_register_closing"]["id"]

    response = client.post(
        "/api/reconciliation/compare",
        json={"stock_record_id": record_id, "cash_register_closing_id": closing_id},
    )

    assert response.status_code == 200
    assert response.json == {"alert_created": False, "stock_cash_alert": None}


def test_reconciliation_compare_requires_ids(client, db_session):
    response = client.post("/api/reconciliation/compare", json={"stock_record_id": 1})
    assert response.status_code == 400

    flagged = client.post(
        "/api/reconciliation/compare",
        json={"stock_record_id": True, "cash_register_closing_id": 1},
    )
    assert flagged.status_code == 400


def test_run_pending(client, db_session, pos_export_dir):
    _write_voided_day(pos_export_dir)
    client.post("/api/stock-records", json=_stock_payload())
    client.post("/api/cash-closings", json=_closing_payload())

    first = client.post("/api/reconciliation/run-pending", json={"limit": 5})
    second = client.post("/api/reconciliation/run-pending")

    assert first.json["alerts_created"] == 1
    assert second.json["alerts_created"] == 0
    assert client.post("/api/reconciliation/run-pending", json={"limit": 0}).status_code == 400


def test_sales_data_endpoint(client, db_session, pos_export_dir):
    _write_empanada_day(pos_export_dir, quantity=4)

    response = client.get("/api/reconciliation/sales-data?location_id=cabildo&date=2026-10-19")
    assert response.status_code == 200
    assert response.json["sales_data"]["product_sales"]["empanadas"] == {"quantity": 4, "total_cents": 320000}

    missing = client.get("/api/reconciliation/sales-data?location_id=cabildo&date=2026-10-18")
    assert missing.status_code == 404
    assert client.get("/api/reconciliation/sales-data?location_id=cabildo").status_code == 400

    malformed = client.get("/api/reconciliation/sales-data?location_id=cabildo&date=19-10-2026")
    assert malformed.status_code == 400
    assert "YYYY-MM-DD" in malformed.json["error"]


# =============================================================================
# ALERTS
# =============================================================================

def _raise_stock_cash_alert(client, pos_export_dir):
    _write_voided_day(pos_export_dir)
    client.post("/api/stock-records", json=_stock_payload())
    client.post("/api/cash-closings", json=_closing_payload())
    return client.post("/api/reconciliation/run-pending").json["stock_cash_alerts"][0]


def test_alert_status_flow(client, db_session, pos_export_dir):
    alert = _raise_stock_cash_alert(client, pos_export_dir)
    url = f"/api/alerts/stock-cash/{alert['id']}/status"

    resolved = client.post(url, json={"status": "resolved", "changed_by": "Supervisor", "notes": "ok"})
    assert resolved.status_code == 200
    assert resolved.json["stock_cash_alert"]["status"] == "resolved"

    assert client.post(url, json={"status": "rejected"}).status_code == 400
    assert client.post(url, json={}).status_code == 400
    assert client.post(url, json={"status": "active"}).status_code == 200
    assert client.post("/api/alerts/stock-cash/999/status", json={"status": "resolved"}).status_code == 404

    feed = client.get("/api/alerts?alert_type=stock_cash").json["alerts"]
    assert feed[0]["status"] == "active"


def test_alert_detail_and_lists(client, db_session, pos_export_dir):
    alert = _raise_stock_cash_alert(client, pos_export_dir)

    detail = client.get(f"/api/alerts/stock-cash/{alert['id']}")
    assert detail.json["stock_record"]["id"] == alert["stock_record_id"]
    assert detail.json["cash_register_closing"]["id"] == alert["cash_register_closing_id"]

    assert client.get("/api/alerts/stock-cash?status=active").json["count"] == 1
    assert client.get("/api/alerts/stock-cash?status=bogus").status_code == 400
    assert client.get("/api/alerts/stock-cash/999").status_code == 404

    stock_alerts = client.get("/api/alerts/stock").json["stock_alerts"]
    assert len(stock_alerts) == 1
    stock_url = f"/api/alerts/stock/{stock_alerts[0]['id']}/status"
    assert client.post(stock_url, json={"status": "rejected"}).status_code == 200

    summary = client.get("/api/alerts/summary").json
    assert summary["stock_cash"]["active"] == 1
    assert summary["stock"]["rejected"] == 1
