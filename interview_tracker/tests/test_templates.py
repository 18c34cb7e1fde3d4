from interview_tracker.seed import DEFAULT_TEMPLATES, seed_templates


def test_list_templates_sorted_by_name(client, headers, templates):
    r = client.get("/api/templates", headers=headers)
    assert r.status_code == 200, r.text
    names = [t["name"] for t in r.json()["data"]]
    assert names == sorted(name for name, _, _ in DEFAULT_TEMPLATES)


def test_template_stages_in_order(client, headers, templates):
    eng = next(t for t in templates if t.name == "Software Engineering")
    r = client.get(f"/api/templates/{eng.id}/stages", headers=headers)
    assert r.status_code == 200, r.text
    data = r.json()["data"]
    assert data["template"]["name"] == "Software Engineering"
    assert [s["stage_order"] for s in data["stages"]] == [1, 2, 3, 4, 5]
    assert data["stages"][0]["stage_name"] == "Recruiter Screen"


def test_unknown_template_is_404(client, headers):
    r = client.get("/api/templates/424242/stages", headers=headers)
    assert r.status_code == 404
    assert r.json() == {"success": False, "message": "Template not found."}


def test_templates_require_auth(client):
    assert client.get("/api/templates").status_code == 401


def test_seeding_is_one_shot(db_session):
    assert seed_templates(db_session) == len(DEFAULT_TEMPLATES)
    assert seed_templates(db_session) == 0


def test_template_id_beyond_integer_range_is_404(client, headers):
    r = client.get(f"/api/templates/{10**20}/stages", headers=headers)
    assert r.status_code == 404
    assert r.json()["message"] == "Template not found."
