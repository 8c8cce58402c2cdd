def test_inventory_requires_login(client):
    assert client.get("/api/inventory").status_code == 401


def test_add_list_and_adjust(as_staff):
    resp = as_staff.post("/api/inventory", json={"name": "칫솔세트", "stock": 3})
    assert resp.status_code == 201
    item_id = resp.get_json()["data"]["item_id"]

    resp = as_staff.post(f"/api/inventory/{item_id}/stock", json={"change": -1, "reason": "파손"})
    assert resp.get_json()["data"]["stock"] == 2

    items = as_staff.get("/api/inventory").get_json()["data"]
    assert [(i["name"], i["stock"]) for i in items] == [("칫솔세트", 2)]

    logs = as_staff.get("/api/inventory/logs?limit=5").get_json()["data"]
    assert logs[0]["reason"] == "파손"
    assert len(logs[0]["logged_at"]) == 19


def test_overdraw_is_400(as_staff):
    item_id = as_staff.post("/api/inventory", json={"name": "치실"}).get_json()["data"]["item_id"]

    assert as_staff.post(f"/api/inventory/{item_id}/stock", json={"change": -1}).status_code == 400


def test_bad_category_id_is_400(as_staff):
    assert as_staff.post("/api/inventory", json={"name": "치실", "category_id": "x"}).status_code == 400


def test_staff_cannot_delete_or_manage_categories(as_staff):
    item_id = as_staff.post("/api/inventory", json={"name": "치실"}).get_json()["data"]["item_id"]

    assert as_staff.delete(f"/api/inventory/{item_id}").status_code == 403
    assert as_staff.post("/api/gift-categories", json={"name": "구환"}).status_code == 403


def test_owner_manages_categories(as_owner):
    category = as_owner.post("/api/gift-categories", json={"name": "구환 선물", "color": "#ff0000"}).get_json()["data"]
    item_id = as_owner.post("/api/inventory", json={"name": "치실"}).get_json()["data"]["item_id"]

    resp = as_owner.put(f"/api/inventory/{item_id}/category", json={"category_id": category["category_id"]})
    assert resp.get_json()["data"]["category_id"] == category["category_id"]

    assert as_owner.delete(f"/api/gift-categories/{category['category_id']}").status_code == 200
    assert as_owner.get("/api/gift-categories").get_json()["data"] == []
    assert as_owner.get("/api/inventory").get_json()["data"][0]["category_id"] is None

    assert as_owner.delete(f"/api/inventory/{item_id}").status_code == 200
    assert as_owner.delete(f"/api/inventory/{item_id}").status_code == 404
