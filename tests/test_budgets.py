from datetime import date


def test_budget_lifecycle(client, db, make_transaction):
    assert client.post("/budgets", json={"name": "Household"}).status_code == 200
    assert client.post("/budgets", json={"name": "Household"}).status_code == 409
    assert client.post("/budgets", json={"name": "H"}).status_code == 400
    assert [b["name"] for b in client.get("/budgets").json()] == ["Household"]

    group = client.post("/budgets/Household/groups", json={"name": "Essentials"}).json()
    category = client.post("/categories", json={"name": "Groceries", "category_group_id": group["id"]}).json()

    make_transaction(amount="-100.25", value_date=date(2024, 3, 5), category_id=category["id"])
    make_transaction(amount="-50.00", value_date=date(2024, 3, 31), category_id=category["id"])
    make_transaction(amount="-999.00", value_date=date(2024, 4, 1), category_id=category["id"])

    view = client.get("/budgets/Household", params={"month": "2024-03"}).json()

    assert view["month"] == "2024-03"
    assert view["category_groups"] == [{
        "id": group["id"],
        "name": "Essentials",
        "categories": [{"id": category["id"], "name": "Groceries", "color": None, "amount": "-150.25"}],
    }]


def test_budget_errors(client):
    assert client.get("/budgets/Missing").status_code == 404
    assert client.post("/budgets/Missing/groups", json={"name": "Essentials"}).status_code == 404

    client.post("/budgets", json={"name": "Household"})
    assert client.get("/budgets/Household", params={"month": "March"}).status_code == 400
