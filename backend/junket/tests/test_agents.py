"""
Tests for the agent hierarchy.
"""
from types import SimpleNamespace

import pytest

from junket.services.agent_service import build_agent_hierarchy


def create_agent(client, headers, name, parent_agent_id=None):
    response = client.post("/api/agents", json={"name": name, "parent_agent_id": parent_agent_id}, headers=headers)
    assert response.status_code == 201
    return response.json()


@pytest.fixture
def agent_tree(client, admin_headers):
    """Chan heads Lee and Ma; Lee has Ng below."""
    chan = create_agent(client, admin_headers, "Chan")
    lee = create_agent(client, admin_headers, "Lee", chan["id"])
    ma = create_agent(client, admin_headers, "Ma", chan["id"])
    ng = create_agent(client, admin_headers, "Ng", lee["id"])
    solo = create_agent(client, admin_headers, "Yip")
    return {"chan": chan, "lee": lee, "ma": ma, "ng": ng, "solo": solo}


def test_build_hierarchy_treats_missing_parent_as_root():
    agents = [
        SimpleNamespace(id=1, name="Chan", status="active", parent_agent_id=None),
        SimpleNamespace(id=2, name="Lee", status="active", parent_agent_id=1),
        SimpleNamespace(id=3, name="Orphan", status="active", parent_agent_id=42),
    ]

    tree = build_agent_hierarchy(agents)
    assert [node["id"] for node in tree] == [1, 3]
    assert [child["id"] for child in tree[0]["children"]] == [2]


def test_hierarchy(client, admin_headers, agent_tree):
    data = client.get("/api/agents/hierarchy", headers=admin_headers).json()

    assert data["total_agents"] == 5
    roots = {node["name"]: node for node in data["agents"]}
    assert set(roots) == {"Chan", "Yip"}
    assert [child["name"] for child in roots["Chan"]["children"]] == ["Lee", "Ma"]
    assert [child["name"] for child in roots["Chan"]["children"][0]["children"]] == ["Ng"]


def test_children(client, admin_headers, agent_tree):
    chan = agent_tree["chan"]
    data = client.get(f"/api/agents/{chan['id']}/children", headers=admin_headers).json()

    assert data["parent"]["id"] == chan["id"]
    assert [child["name"] for child in data["children"]] == ["Lee", "Ma"]
    assert client.get("/api/agents/999/children", headers=admin_headers).status_code == 404


def test_set_parent(client, admin_headers, agent_tree):
    solo, ma = agent_tree["solo"], agent_tree["ma"]

    response = client.put(f"/api/agents/{solo['id']}/parent", json={"parent_agent_id": ma["id"]}, headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["parent_agent_id"] == ma["id"]

    response = client.put(f"/api/agents/{solo['id']}/parent", json={"parent_agent_id": None}, headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["parent_agent_id"] is None


def test_set_parent_rejects_cycles(client, admin_headers, agent_tree):
    chan, ng = agent_tree["chan"], agent_tree["ng"]

    response = client.put(f"/api/agents/{chan['id']}/parent", json={"parent_agent_id": chan["id"]}, headers=admin_headers)
    assert response.status_code == 400
    response = client.put(f"/api/agents/{chan['id']}/parent", json={"parent_agent_id": ng["id"]}, headers=admin_headers)
    assert response.status_code == 400
    response = client.put(f"/api/agents/{chan['id']}/parent", json={"parent_agent_id": 999}, headers=admin_headers)
    assert response.status_code == 400
    response = client.put("/api/agents/999/parent", json={"parent_agent_id": None}, headers=admin_headers)
    assert response.status_code == 404


def test_set_parent_requires_admin(client, make_user, agent_tree):
    staff_headers = make_user("floor", "staff")

    response = client.put(f"/api/agents/{agent_tree['ng']['id']}/parent", json={"parent_agent_id": None}, headers=staff_headers)
    assert response.status_code == 403


def test_deleting_agent_moves_downline_up(client, admin_headers, agent_tree):
    chan, lee, ng = agent_tree["chan"], agent_tree["lee"], agent_tree["ng"]

    assert client.delete(f"/api/agents/{lee['id']}", headers=admin_headers).status_code == 200

    assert client.get(f"/api/agents/{ng['id']}", headers=admin_headers).json()["parent_agent_id"] == chan["id"]
    children = client.get(f"/api/agents/{chan['id']}/children", headers=admin_headers).json()["children"]
    assert [child["name"] for child in children] == ["Ma", "Ng"]


def test_deleting_agent_deactivates_linked_account(client, admin_headers, make_user, agent_tree):
    solo = agent_tree["solo"]
    make_user("yip", "agent", agent_id=solo["id"])

    assert client.delete(f"/api/agents/{solo['id']}", headers=admin_headers).status_code == 200

    response = client.post("/api/auth/login", json={"username": "yip", "password": "password123"})
    assert response.status_code == 403
