from budgeteer.models import Category, Transaction
from budgeteer.services.categories_service import suggest_category


def test_keywords_match_case_insensitively():
    groceries = Category(id=1, name="Groceries", keywords=["tesco", "rema"])
    assert suggest_category("TESCO EXPRESS", [groceries]) is groceries
    assert suggest_category("Spotify", [groceries]) is None
    assert suggest_category(None, [groceries]) is None


def test_first_category_by_id_wins_and_empty_keywords_are_skipped():
    empty = Category(id=1, name="Misc", keywords=["", "  "])
    food = Category(id=2, name="Food", keywords=["express"])
    shops = Category(id=3, name="Shops", keywords=["tesco"])
    assert suggest_category("TESCO EXPRESS", [empty, food, shops]) is food


def test_create_category_accepts_comma_separated_keywords(client):
    r = client.post("/categories", json={"name": " Groceries ", "color": "#2ECC40", "keywords": "tesco, rema ,,"})

    assert r.status_code == 200
    assert r.json()["name"] == "Groceries"
    assert r.json()["keywords"] == ["tesco", "rema"]
    assert client.get("/categories").json()[0]["name"] == "Groceries"


def test_duplicate_category_is_409(client):
    client.post("/categories", json={"name": "Groceries"})
    r = client.post("/categories", json={"name": "Groceries"})
    assert r.status_code == 409


def test_blank_category_name_is_400(client):
    r = client.post("/categories", json={"name": "   "})
    assert r.status_code == 400


def test_update_category(client):
    first = client.post("/categories", json={"name": "Groceries"}).json()
    client.post("/categories", json={"name": "Transport"})

    r = client.patch(f"/categories/{first['id']}", json={"keywords": ["kiwi"], "color": "#000000"})
    assert r.json()["keywords"] == ["kiwi"]
    assert r.json()["name"] == "Groceries"

    assert client.patch(f"/categories/{first['id']}", json={"name": "Transport"}).status_code == 409
    assert client.patch("/categories/999", json={"name": "Other"}).status_code == 404
    assert client.patch(f"/categories/{first['id']}", json={"category_group_id": 999}).status_code == 404


def test_delete_category_keeps_transactions(client, db, make_transaction):
    category = client.post("/categories", json={"name": "Groceries"}).json()
    transaction = make_transaction(category_id=category["id"])

    r = client.delete(f"/categories/{category['id']}")

    assert r.status_code == 200
    db.expire_all()
    kept = db.get(Transaction, transaction.id)
    assert kept is not None
    assert kept.category_id is None
    assert client.delete(f"/categories/{category['id']}").status_code == 404


def test_manual_category_is_only_changed_on_apply(client, db, make_transaction):
    groceries = client.post("/categories", json={"name": "Groceries", "keywords": ["tesco"]}).json()
    treats = client.post("/categories", json={"name": "Treats"}).json()
    transaction = make_transaction(description="TESCO EXPRESS")
    client.put(f"/transactions/{transaction.id}/category", json={"category_id": treats["id"]})

    suggestions = client.get("/transactions/suggestions").json()["suggestions"]

    assert suggestions == [{
        "transaction_id": transaction.id,
        "description": "TESCO EXPRESS",
        "current_category_id": treats["id"],
        "category_id": groceries["id"],
        "category_name": "Groceries",
    }]
    db.expire_all()
    assert db.get(Transaction, transaction.id).category_id == treats["id"]

    r = client.post("/transactions/suggestions/apply", json={"transactions": [
        {"transaction_id": s["transaction_id"], "category_id": s["category_id"]} for s in suggestions
    ]})

    assert r.status_code == 200
    db.expire_all()
    assert db.get(Transaction, transaction.id).category_id == groceries["id"]
    assert client.get("/transactions/suggestions").json()["suggestions"] == []


def test_set_category_is_idempotent_and_nullable(client, make_transaction):
    category = client.post("/categories", json={"name": "Groceries"}).json()
    transaction = make_transaction()

    for _ in range(2):
        r = client.put(f"/transactions/{transaction.id}/category", json={"category_id": category["id"]})
        assert r.json() == {"id": transaction.id, "category_id": category["id"]}

    r = client.put(f"/transactions/{transaction.id}/category", json={"category_id": None})
    assert r.json()["category_id"] is None

    assert client.put("/transactions/999/category", json={"category_id": None}).status_code == 404
    assert client.put(f"/transactions/{transaction.id}/category", json={"category_id": 999}).status_code == 404


def test_bulk_set_is_validated_before_writing(client, db, make_transaction):
    category = client.post("/categories", json={"name": "Groceries"}).json()
    first = make_transaction()

    r = client.put("/transactions/categories", json={"transactions": [
        {"transaction_id": first.id, "category_id": category["id"]},
        {"transaction_id": 999, "category_id": category["id"]},
    ]})

    assert r.status_code == 404
    db.expire_all()
    assert db.get(Transaction, first.id).category_id is None
