def _article(client, sku, category="STANDARD"):
    r = client.post("/api/articles", json={"sku": sku, "name": f"Article {sku}", "category": category})
    assert r.status_code == 201, r.text
    return r.json()["id"]


def test_receive_goods_lists_stock_with_serials(client):
    article_id = _article(client, "NB-T14", "SERIALIZED")

    r = client.post(
        "/api/receiving/goods",
        json={
            "articleId": article_id,
            "quantity": 2,
            "performedBy": "Lager",
            "serialNumbers": [{"serialNo": "PF-1"}, {"serialNo": "PF-2", "isUsed": True}],
        },
    )
    assert r.status_code == 200, r.text

    stock = client.get("/api/stock").json()
    assert len(stock) == 1
    assert stock[0]["current_stock"] == 2
    assert [s["serial_no"] for s in stock[0]["serial_numbers"]] == ["PF-1", "PF-2"]

    r = client.post(
        "/api/receiving/goods",
        json={"articleId": article_id, "quantity": 1, "serialNumbers": [{"serialNo": "PF-2"}]},
    )
    assert r.status_code == 409
    assert client.get(f"/api/articles/{article_id}").json()["current_stock"] == 2


def test_reconcile_over_http_is_clean_after_normal_bookings(client):
    article_id = _article(client, "DOCK-USB")
    client.post("/api/stock-movements", json={"articleId": article_id, "type": "IN", "quantity": 5})
    client.post("/api/stock-movements", json={"articleId": article_id, "type": "OUT", "quantity": 2})

    assert client.get("/api/stock/reconcile").json() == []
    r = client.post("/api/stock/reconcile")
    assert r.status_code == 200
    assert r.json()["success"] is True


def test_inventur_round_trip(client):
    article_id = _article(client, "MON-27")
    client.post("/api/stock-movements", json={"articleId": article_id, "type": "IN", "quantity": 10})

    r = client.post("/api/inventur", json={"name": "Q4", "startedBy": "Jasmin"})
    assert r.status_code == 200, r.text
    inventory_id = r.json()["inventoryId"]

    detail = client.get(f"/api/inventur/{inventory_id}").json()
    item = detail["items"][0]
    assert item["expected_qty"] == 10

    r = client.post(f"/api/inventur/items/{item['id']}/check", json={"countedQty": 8, "checkedBy": "Tom"})
    assert r.json() == {"success": True, "difference": -2}

    r = client.post(f"/api/inventur/{inventory_id}/apply", json={"performedBy": "Jasmin"})
    assert r.json() == {"success": True, "corrections": 1}
    assert client.get(f"/api/articles/{article_id}").json()["current_stock"] == 8

    r = client.post(f"/api/inventur/{inventory_id}/cancel")
    assert r.status_code == 400
    assert "no longer in progress" in r.json()["error"]


def test_dashboard_and_serial_status(client):
    article_id = _article(client, "PH-IP15", "SERIALIZED")
    r = client.post("/api/serial-numbers", json={"articleId": article_id, "serialNo": "IMEI-1"})
    assert r.status_code == 201, r.text
    serial_id = r.json()["serial_number"]["id"]

    r = client.post(f"/api/serial-numbers/{serial_id}/status", json={"status": "DEFECTIVE"})
    assert r.status_code == 200
    assert client.get(f"/api/serial-numbers/available/{article_id}").json() == []

    dashboard = client.get("/api/dashboard").json()
    assert set(dashboard) == {"counts", "orders", "low_stock", "recent_movements"}
    assert dashboard["counts"]["new"] == 0
