from models import Score


def create_project(client, **overrides):
    body = {"name": "Demo", "description": "d", "track": "AI", "trl": 3, "links": []}
    body.update(overrides)
    resp = client.post("/api/projects", json=[body])
    assert resp.status_code == 201
    return resp.get_json()[0]


def create_judge(client, tracks=("AI",), name="Anna"):
    resp = client.post("/api/judges", json={"name": name, "tracks": list(tracks)})
    assert resp.status_code == 201
    return resp.get_json()


def test_get_all_data_shape(client, seeded):
    data = client.get("/api/data").get_json()
    assert set(data) == {"projects", "judges", "criteria", "scores"}
    assert [p["id"] for p in data["projects"]][:2] == ["p_seed_1", "p_seed_2"]
    assert data["scores"][0]["projectId"] == "p_seed_1"


def test_batch_create_mints_ids(client):
    resp = client.post("/api/projects", json=[
        {"name": "A", "description": "", "track": "AI", "trl": 1},
        {"name": "B", "description": "", "track": "Robotics", "trl": 2, "links": ["https://b"]},
    ])
    assert resp.status_code == 201
    created = resp.get_json()
    assert [p["name"] for p in created] == ["A", "B"]
    assert all(p["id"].startswith("p_") and "_local_" not in p["id"] for p in created)
    assert created[1]["links"] == ["https://b"]


def test_batch_create_partial_failure_returns_created(client):
    resp = client.post("/api/projects", json=[
        {"name": "A", "description": "", "track": "AI", "trl": 1},
        {"description": "no name", "track": "AI"},
    ])
    assert resp.status_code == 400
    payload = resp.get_json()
    assert payload["message"]
    assert [p["name"] for p in payload["created"]] == ["A"]
    assert len(client.get("/api/data").get_json()["projects"]) == 1


def test_update_and_missing_project(client):
    project = create_project(client)
    project["name"] = "Renamed"
    resp = client.put(f"/api/projects/{project['id']}", json=project)
    assert resp.status_code == 200
    assert resp.get_json()["name"] == "Renamed"

    resp = client.put("/api/projects/p_missing", json=project)
    assert resp.status_code == 404
    assert "message" in resp.get_json()


def test_delete_project_cascades_only_its_scores(client):
    p1 = create_project(client, name="One")
    p2 = create_project(client, name="Two")
    judge = create_judge(client)
    client.post("/api/scores", json={"id": "s1", "projectId": p1["id"], "judgeId": judge["id"], "ratings": {"c": 5}})
    client.post("/api/scores", json={"id": "s2", "projectId": p2["id"], "judgeId": judge["id"], "ratings": {"c": 6}})

    resp = client.delete(f"/api/projects/{p1['id']}")
    assert resp.get_json() == {"success": True}
    assert [s["id"] for s in client.get("/api/data").get_json()["scores"]] == ["s2"]


def test_delete_judge_cascades_only_their_scores(client):
    project = create_project(client)
    anna = create_judge(client, name="Anna")
    igor = create_judge(client, name="Igor")
    client.post("/api/scores", json={"id": "s1", "projectId": project["id"], "judgeId": anna["id"], "ratings": {}})
    client.post("/api/scores", json={"id": "s2", "projectId": project["id"], "judgeId": igor["id"], "ratings": {}})

    assert client.delete(f"/api/judges/{anna['id']}").status_code == 200
    assert [s["id"] for s in client.get("/api/data").get_json()["scores"]] == ["s2"]
    assert client.delete(f"/api/judges/{anna['id']}").status_code == 404


def test_delete_criterion_keeps_scores(client, seeded):
    assert client.delete("/api/criteria/c_seed_3").status_code == 200
    data = client.get("/api/data").get_json()
    assert "c_seed_3" in data["scores"][0]["ratings"]
    assert [c["id"] for c in data["criteria"]] == ["c_seed_1", "c_seed_2"]


def test_criterion_crud(client):
    resp = client.post("/api/criteria", json={"name": "Impact", "weight": 3})
    assert resp.status_code == 201
    criterion = resp.get_json()
    criterion["weight"] = 1.5
    assert client.put(f"/api/criteria/{criterion['id']}", json=criterion).get_json()["weight"] == 1.5


def test_score_upsert_same_id_overwrites(client):
    project = create_project(client)
    judge = create_judge(client)
    body = {"id": "s1", "projectId": project["id"], "judgeId": judge["id"], "ratings": {"c1": 4}, "trl": 3}
    client.post("/api/scores", json=body)
    body["ratings"] = {"c1": 9}
    resp = client.post("/api/scores", json=body)
    assert resp.status_code == 200
    scores = client.get("/api/data").get_json()["scores"]
    assert len(scores) == 1
    assert scores[0]["ratings"] == {"c1": 9.0}


def test_score_upsert_same_pair_new_id_keeps_single_record(client):
    project = create_project(client)
    judge = create_judge(client)
    client.post("/api/scores", json={"id": "s1", "projectId": project["id"], "judgeId": judge["id"], "ratings": {"c1": 4}})
    resp = client.post("/api/scores", json={"id": "s2", "projectId": project["id"], "judgeId": judge["id"], "ratings": {"c1": 7}})
    assert resp.get_json()["id"] == "s1"
    assert Score.query.count() == 1


def test_score_for_unknown_project_is_404(client):
    judge = create_judge(client)
    resp = client.post("/api/scores", json={"id": "s1", "projectId": "p_x", "judgeId": judge["id"], "ratings": {}})
    assert resp.status_code == 404


def test_delete_score(client, seeded):
    assert client.delete("/api/scores/s_seed_1").get_json() == {"success": True}
    assert client.delete("/api/scores/s_seed_1").status_code == 404


def test_results_ranking(client, seeded):
    ranking = client.get("/api/results").get_json()
    assert ranking[0]["projectId"] == "p_seed_1"
    assert ranking[0]["meanComposite"] == 7.8
    assert ranking[0]["trlConsensus"] == 4
    assert all(not r["isScored"] for r in ranking[1:])
