from backend.models.template import TestTemplate
from backend.seed import template_seed

PANEL = [
    {"kind": "heading", "text": "CONTROLS"},
    {"kind": "result", "row_label": "C1", "antigen": "Saline"},
]


def _create(client, name="Inhalant Panel", items=PANEL):
    return client.post("/api/templates", json={"name": name, "test_items": items})


def test_create_and_fetch_template(client):
    response = _create(client)
    assert response.status_code == 201
    created = response.json()
    assert created["message"] == "Template saved"
    template = created["data"]
    assert template["test_items"][1]["is_positive"] is False

    by_id = client.get(f"/api/templates/{template['id']}").json()["data"]
    by_name = client.get("/api/templates/name/Inhalant Panel").json()["data"]
    assert by_id == by_name == template


def test_template_name_is_trimmed_and_unique(client):
    assert _create(client, name="  Food Panel  ").json()["data"]["name"] == "Food Panel"
    duplicate = _create(client, name="Food Panel")
    assert duplicate.status_code == 409
    assert duplicate.json()["message"] == 'A template named "Food Panel" already exists'
    assert duplicate.json()["error"] == "Conflict"


def test_blank_template_name_is_rejected(client):
    response = _create(client, name="   ")
    assert response.status_code == 400
    assert response.json()["message"] == "Please enter a test name before saving the template."


def test_template_without_items_is_rejected(client):
    assert _create(client, items=[]).status_code == 422


def test_update_template(client):
    template = _create(client).json()["data"]
    _create(client, name="Other Panel")

    renamed = client.put(f"/api/templates/{template['id']}", json={"name": "Renamed Panel"})
    assert renamed.status_code == 200
    assert renamed.json()["data"]["name"] == "Renamed Panel"
    assert renamed.json()["data"]["test_items"] == template["test_items"]

    clash = client.put(f"/api/templates/{template['id']}", json={"name": "Other Panel"})
    assert clash.status_code == 409

    items = client.put(
        f"/api/templates/{template['id']}",
        json={"test_items": [{"kind": "result", "row_label": "F1", "antigen": "Peanut"}]},
    ).json()["data"]["test_items"]
    assert [i["antigen"] for i in items] == ["Peanut"]


def test_delete_template(client):
    template = _create(client).json()["data"]
    deleted = client.delete(f"/api/templates/{template['id']}")
    assert deleted.status_code == 200
    assert deleted.json()["data"] is None
    assert client.get(f"/api/templates/{template['id']}").status_code == 404
    assert client.delete(f"/api/templates/{template['id']}").status_code == 404


def test_list_templates(client):
    _create(client, name="A")
    _create(client, name="B")
    names = {t["name"] for t in client.get("/api/templates").json()["data"]}
    assert names == {"A", "B"}


def test_seed_adds_missing_templates_without_overwriting(db_session, monkeypatch):
    edited_name = template_seed.TEMPLATES[0]["name"]
    db_session.add(TestTemplate(name=edited_name, test_items=[{"kind": "heading", "text": "CUSTOM"}]))
    db_session.commit()
    monkeypatch.setattr(template_seed, "SessionLocal", lambda: db_session)

    template_seed.seed_templates()
    template_seed.seed_templates()

    rows = {t.name: t for t in db_session.query(TestTemplate).all()}
    assert set(rows) == {t["name"] for t in template_seed.TEMPLATES}
    assert rows[edited_name].test_items == [{"kind": "heading", "text": "CUSTOM"}]
