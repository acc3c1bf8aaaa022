import pytest


def _category(client, name, order=0):
    resp = client.post("/api/faq-categories", json={"name": name, "order": order})
    assert resp.status_code == 201, resp.text
    return resp.json()


def _faq(client, question, order=0, category_id=None):
    resp = client.post(
        "/api/faqs",
        json={"question": question, "answer": "Risposta", "order": order, "categoryId": category_id},
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


def test_categories_are_listed_by_order(admin_client):
    _category(admin_client, "Pagamenti", order=2)
    _category(admin_client, "Servizi", order=1)
    _category(admin_client, "Consegna", order=3)

    names = [c["name"] for c in admin_client.get("/api/faq-categories").json()]
    assert names == ["Servizi", "Pagamenti", "Consegna"]


def test_faqs_are_listed_by_order_and_filtered(admin_client):
    prices = _category(admin_client, "Prezzi")
    _faq(admin_client, "Quanto costa?", order=2, category_id=prices["id"])
    _faq(admin_client, "Accettate carte?", order=1, category_id=prices["id"])
    _faq(admin_client, "Dove siete?", order=0)

    all_faqs = admin_client.get("/api/faqs").json()
    assert [f["question"] for f in all_faqs] == ["Dove siete?", "Accettate carte?", "Quanto costa?"]

    filtered = admin_client.get("/api/faqs", params={"categoryId": prices["id"]}).json()
    assert [f["question"] for f in filtered] == ["Accettate carte?", "Quanto costa?"]


def test_zero_category_filter_is_still_a_filter(admin_client):
    _faq(admin_client, "Dove siete?")
    assert admin_client.get("/api/faqs", params={"categoryId": 0}).json() == []


def test_partial_faq_update(admin_client):
    faq = _faq(admin_client, "Orari?", order=5)
    resp = admin_client.patch(f"/api/faqs/{faq['id']}", json={"answer": "9-18"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["answer"] == "9-18"
    assert body["question"] == "Orari?"
    assert body["order"] == 5


def test_update_and_delete_unknown_ids_are_404(admin_client):
    assert admin_client.patch("/api/faqs/99", json={"answer": "x"}).status_code == 404
    assert admin_client.delete("/api/faqs/99").status_code == 404
    assert admin_client.patch("/api/faq-categories/99", json={"name": "x"}).status_code == 404
    assert admin_client.delete("/api/faq-categories/99").status_code == 404


def test_delete_faq(admin_client):
    faq = _faq(admin_client, "Da eliminare?")
    assert admin_client.delete(f"/api/faqs/{faq['id']}").status_code == 204
    assert admin_client.get("/api/faqs").json() == []


def test_deleting_category_keeps_its_faqs(admin_client):
    category = _category(admin_client, "Temporanea")
    faq = _faq(admin_client, "Resto?", category_id=category["id"])

    assert admin_client.delete(f"/api/faq-categories/{category['id']}").status_code == 204
    assert admin_client.get("/api/faq-categories").json() == []

    remaining = admin_client.get("/api/faqs").json()
    assert [f["id"] for f in remaining] == [faq["id"]]
    assert remaining[0]["categoryId"] is None


def test_rename_category(admin_client):
    category = _category(admin_client, "Vecchio", order=4)
    resp = admin_client.patch(f"/api/faq-categories/{category['id']}", json={"name": "Nuovo"})
    assert resp.json() == {"id": category["id"], "name": "Nuovo", "order": 4}


@pytest.mark.parametrize("body", [{"question": None}, {"answer": None}, {"order": None}])
def test_explicit_null_on_required_faq_field_is_400(admin_client, body):
    faq = _faq(admin_client, "Orari?", order=5)
    resp = admin_client.patch(f"/api/faqs/{faq['id']}", json=body)
    assert resp.status_code == 400
    assert resp.json()["error"] == "Dati non validi"
    assert admin_client.get("/api/faqs").json() == [faq]


@pytest.mark.parametrize("body", [{"name": None}, {"order": None}])
def test_explicit_null_on_category_field_is_400(admin_client, body):
    category = _category(admin_client, "Prezzi", order=1)
    resp = admin_client.patch(f"/api/faq-categories/{category['id']}", json=body)
    assert resp.status_code == 400
    assert admin_client.get("/api/faq-categories").json() == [category]


def test_category_can_still_be_cleared_from_faq(admin_client):
    category = _category(admin_client, "Prezzi")
    faq = _faq(admin_client, "Quanto costa?", category_id=category["id"])
    resp = admin_client.patch(f"/api/faqs/{faq['id']}", json={"categoryId": None})
    assert resp.status_code == 200
    assert resp.json()["categoryId"] is None
