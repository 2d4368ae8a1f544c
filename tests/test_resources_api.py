"""Resource CRUD API tests (MCP configs, agents, prompts, skills, solutions).

Learn: All five kinds share one router factory, so the generic behavior
(ownership, visibility, pagination, downloads) is tested on a couple of
kinds and the kind-specific extras get their own tests:
- agent configs: ?format= filter, raw download, delete blocked while in use
- skills: resource files replaced wholesale on update
- solutions: bundle references, ?aiTool= filter, apply
"""

import uuid

import pytest
from sqlalchemy import select

from configplaza.db.models import (
    AgentConfig,
    ConfigFormat,
    McpConfig,
    ResourceKind,
    Skill,
    Solution,
)


# ═══════════════════════════════════════════════════════════
# Create / read
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_create_mcp_config(client, alice):
    r = await client.post(
        "/api/mcp-configs",
        json={
            "name": "filesystem",
            "description": "Local files",
            "configJson": '{"command": "npx", "args": ["-y", "@mcp/fs"]}',
            "tags": ["files", "local"],
        },
    )
    assert r.status_code == 201
    data = r.json()["data"]
    assert data["name"] == "filesystem"
    assert data["userId"] == str(alice.id)
    assert data["isPublic"] is True
    assert data["tags"] == ["files", "local"]
    assert data["likes"] == 0
    assert data["downloads"] == 0
    assert data["author"] == {
        "id": str(alice.id),
        "username": "alice",
        "avatarUrl": "https://avatars.example.com/alice.png",
    }
    assert data["isLikedByCurrentUser"] is False


@pytest.mark.asyncio
async def test_create_requires_auth(unauthenticated_client):
    r = await unauthenticated_client.post("/api/prompts", json={"name": "x"})
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_create_validation_error_envelope(client):
    r = await client.post("/api/prompts", json={"name": ""})
    assert r.status_code == 422
    body = r.json()
    assert body["success"] is False
    assert body["error"]["code"] == "VALIDATION_ERROR"
    assert "name" in body["error"]["message"]


@pytest.mark.asyncio
async def test_detail_counts_a_download(client, db_session, bob, make_resource):
    prompt = await make_resource(ResourceKind.CUSTOM_PROMPT, bob, content="Review this")
    r = await client.get(f"/api/prompts/{prompt.id}")
    assert r.status_code == 200
    assert r.json()["data"]["downloads"] == 1
    assert r.json()["data"]["content"] == "Review this"

    await client.get(f"/api/prompts/{prompt.id}")
    await db_session.refresh(prompt)
    assert prompt.downloads == 2


@pytest.mark.asyncio
async def test_private_detail_is_owner_only(client, unauthenticated_client, auth_headers, alice, bob, make_resource):
    mcp = await make_resource(ResourceKind.MCP_CONFIG, alice, is_public=False)

    r = await client.get(f"/api/mcp-configs/{mcp.id}")
    assert r.status_code == 200

    r = await unauthenticated_client.get(f"/api/mcp-configs/{mcp.id}", headers=auth_headers(bob))
    assert r.status_code == 403
    assert r.json()["error"]["code"] == "FORBIDDEN"

    r = await unauthenticated_client.get(f"/api/mcp-configs/{mcp.id}")
    assert r.status_code == 403


@pytest.mark.asyncio
async def test_unknown_id_is_404(client):
    r = await client.get(f"/api/skills/{uuid.uuid4()}")
    assert r.status_code == 404
    assert r.json()["error"]["message"] == "Skill not found"


@pytest.mark.asyncio
async def test_malformed_id_is_422(client):
    r = await client.get("/api/skills/not-a-uuid")
    assert r.status_code == 422


# ═══════════════════════════════════════════════════════════
# Update / delete
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_owner_partial_update(client, db_session, alice, make_resource):
    prompt = await make_resource(
        ResourceKind.CUSTOM_PROMPT, alice, description="old", content="keep me"
    )
    r = await client.put(
        f"/api/prompts/{prompt.id}", json={"description": "new", "isPublic": False}
    )
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["description"] == "new"
    assert data["content"] == "keep me"
    assert data["isPublic"] is False


@pytest.mark.asyncio
async def test_non_owner_cannot_update_or_delete(unauthenticated_client, auth_headers, alice, bob, make_resource):
    agent = await make_resource(ResourceKind.AGENT_CONFIG, alice)
    headers = auth_headers(bob)

    r = await unauthenticated_client.put(
        f"/api/agent-configs/{agent.id}", json={"name": "mine now"}, headers=headers
    )
    assert r.status_code == 403

    r = await unauthenticated_client.delete(f"/api/agent-configs/{agent.id}", headers=headers)
    assert r.status_code == 403


@pytest.mark.asyncio
async def test_admin_role_grants_nothing_extra(unauthenticated_client, db_session, auth_headers, alice, make_user, make_resource):
    root = await make_user("root")
    root.role = "admin"
    await db_session.commit()
    mcp = await make_resource(ResourceKind.MCP_CONFIG, alice)

    r = await unauthenticated_client.delete(f"/api/mcp-configs/{mcp.id}", headers=auth_headers(root))
    assert r.status_code == 403


@pytest.mark.asyncio
async def test_delete(client, db_session, alice, make_resource):
    mcp = await make_resource(ResourceKind.MCP_CONFIG, alice)
    r = await client.delete(f"/api/mcp-configs/{mcp.id}")
    assert r.status_code == 200
    assert r.json()["data"] == {"deleted": True}

    r = await client.get(f"/api/mcp-configs/{mcp.id}")
    assert r.status_code == 404


# ═══════════════════════════════════════════════════════════
# Listings
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_mine_and_public_listings(client, alice, bob, make_resource, like):
    own = await make_resource(ResourceKind.CUSTOM_PROMPT, alice, is_public=False)
    liked = await make_resource(ResourceKind.CUSTOM_PROMPT, bob)
    other = await make_resource(ResourceKind.CUSTOM_PROMPT, bob)
    await make_resource(ResourceKind.CUSTOM_PROMPT, bob, is_public=False)
    await like(alice, liked)

    mine = (await client.get("/api/prompts/mine")).json()
    assert {p["id"] for p in mine["data"]} == {str(own.id), str(liked.id)}
    assert mine["meta"]["total"] == 2
    flags = {p["id"]: p["isLikedByCurrentUser"] for p in mine["data"]}
    assert flags == {str(own.id): False, str(liked.id): True}

    public = (await client.get("/api/prompts/public")).json()
    assert [p["id"] for p in public["data"]] == [str(other.id)]

    visible = (await client.get("/api/prompts")).json()
    assert visible["meta"]["total"] == 3


@pytest.mark.asyncio
async def test_mine_requires_auth(unauthenticated_client):
    r = await unauthenticated_client.get("/api/prompts/mine")
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_pagination_meta(client, alice, make_resource):
    for _ in range(5):
        await make_resource(ResourceKind.SKILL, alice)

    r = await client.get("/api/skills", params={"page": 2, "limit": 2})
    body = r.json()
    assert len(body["data"]) == 2
    assert body["meta"] == {"page": 2, "limit": 2, "total": 5}

    r = await client.get("/api/skills", params={"limit": 1000})
    assert r.json()["meta"]["limit"] == 100

    r = await client.get("/api/skills", params={"page": 0})
    assert r.status_code == 422


@pytest.mark.asyncio
async def test_is_public_filter(client, alice, make_resource):
    await make_resource(ResourceKind.MCP_CONFIG, alice)
    private = await make_resource(ResourceKind.MCP_CONFIG, alice, is_public=False)

    r = await client.get("/api/mcp-configs", params={"isPublic": "false"})
    assert [m["id"] for m in r.json()["data"]] == [str(private.id)]


# ═══════════════════════════════════════════════════════════
# Agent configs
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_agent_format_filter(client, alice, make_resource):
    await make_resource(ResourceKind.AGENT_CONFIG, alice, format=ConfigFormat.MARKDOWN.value)
    yaml_agent = await make_resource(ResourceKind.AGENT_CONFIG, alice, format=ConfigFormat.YAML.value)

    r = await client.get("/api/agent-configs", params={"format": "yaml"})
    assert [a["id"] for a in r.json()["data"]] == [str(yaml_agent.id)]
    assert r.json()["data"][0]["format"] == "yaml"


@pytest.mark.asyncio
async def test_agent_download_is_raw_markdown(unauthenticated_client, db_session, bob, make_resource):
    agent = await make_resource(ResourceKind.AGENT_CONFIG, bob, content="# Be concise\n")
    r = await unauthenticated_client.get(f"/api/agent-configs/{agent.id}/download")
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/markdown")
    assert r.text == "# Be concise\n"

    await db_session.refresh(agent)
    assert agent.downloads == 1


@pytest.mark.asyncio
async def test_agent_in_use_cannot_be_deleted(client, alice, make_resource):
    solution = await make_resource(ResourceKind.SOLUTION, alice)
    r = await client.delete(f"/api/agent-configs/{solution.agent_config_id}")
    assert r.status_code == 409
    assert r.json()["error"]["code"] == "CONFLICT"


# ═══════════════════════════════════════════════════════════
# Skills
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_skill_resources_replaced_on_update(client):
    r = await client.post(
        "/api/skills",
        json={
            "name": "release-notes",
            "skillMarkdown": "# Release notes",
            "resources": [
                {"relativePath": "templates", "fileName": "notes.md", "fileContent": "## v"},
                {"relativePath": "", "fileName": "check.sh", "fileContent": "echo ok"},
            ],
        },
    )
    assert r.status_code == 201
    skill = r.json()["data"]
    assert {f["fileName"] for f in skill["resources"]} == {"notes.md", "check.sh"}

    r = await client.put(f"/api/skills/{skill['id']}", json={"name": "release-notes-v2"})
    assert len(r.json()["data"]["resources"]) == 2

    r = await client.put(
        f"/api/skills/{skill['id']}",
        json={"resources": [{"fileName": "only.md", "fileContent": "x"}]},
    )
    data = r.json()["data"]
    assert data["name"] == "release-notes-v2"
    assert [f["fileName"] for f in data["resources"]] == ["only.md"]


# ═══════════════════════════════════════════════════════════
# Solutions
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_create_solution_with_bundle(client, alice, bob, make_resource):
    agent = await make_resource(ResourceKind.AGENT_CONFIG, alice, name="reviewer")
    mcp = await make_resource(ResourceKind.MCP_CONFIG, bob, name="github")
    prompt = await make_resource(ResourceKind.CUSTOM_PROMPT, alice, name="review-pr")
    skill = await make_resource(ResourceKind.SKILL, alice, name="lint")

    r = await client.post(
        "/api/solutions",
        json={
            "name": "Code review kit",
            "aiTool": "cursor",
            "agentConfigId": str(agent.id),
            "mcpConfigIds": [str(mcp.id)],
            "customPromptIds": [str(prompt.id)],
            "skillIds": [str(skill.id)],
            "compatibility": {"cursor": ">=0.40"},
        },
    )
    assert r.status_code == 201
    data = r.json()["data"]
    assert data["aiTool"] == "cursor"
    assert data["agentConfig"] == {"id": str(agent.id), "name": "reviewer"}
    assert data["mcpConfigs"] == [{"id": str(mcp.id), "name": "github"}]
    assert data["customPrompts"] == [{"id": str(prompt.id), "name": "review-pr"}]
    assert data["skills"] == [{"id": str(skill.id), "name": "lint"}]
    assert data["compatibility"] == {"cursor": ">=0.40"}


@pytest.mark.asyncio
async def test_solution_cannot_bundle_others_private_items(client, alice, bob, make_resource):
    agent = await make_resource(ResourceKind.AGENT_CONFIG, alice)
    hidden = await make_resource(ResourceKind.MCP_CONFIG, bob, is_public=False)

    r = await client.post(
        "/api/solutions",
        json={"name": "sneaky", "agentConfigId": str(agent.id), "mcpConfigIds": [str(hidden.id)]},
    )
    assert r.status_code == 400
    error = r.json()["error"]
    assert error["code"] == "INVALID_REFERENCE"
    assert str(hidden.id) in error["message"]


@pytest.mark.asyncio
async def test_solution_update_relinks(client, db_session, alice, make_resource):
    solution = await make_resource(ResourceKind.SOLUTION, alice)
    prompt = await make_resource(ResourceKind.CUSTOM_PROMPT, alice)

    r = await client.put(
        f"/api/solutions/{solution.id}", json={"customPromptIds": [str(prompt.id)]}
    )
    assert r.status_code == 200
    assert [p["id"] for p in r.json()["data"]["customPrompts"]] == [str(prompt.id)]

    r = await client.put(f"/api/solutions/{solution.id}", json={"customPromptIds": []})
    assert r.json()["data"]["customPrompts"] == []


@pytest.mark.asyncio
async def test_deleting_bundled_mcp_unlinks_it(client, db_session, alice, make_resource):
    mcp = await make_resource(ResourceKind.MCP_CONFIG, alice)
    r = await client.post(
        "/api/solutions",
        json={
            "name": "kit",
            "agentConfigId": str((await make_resource(ResourceKind.AGENT_CONFIG, alice)).id),
            "mcpConfigIds": [str(mcp.id)],
        },
    )
    solution_id = r.json()["data"]["id"]

    assert (await client.delete(f"/api/mcp-configs/{mcp.id}")).status_code == 200
    r = await client.get(f"/api/solutions/{solution_id}")
    assert r.json()["data"]["mcpConfigs"] == []


@pytest.mark.asyncio
async def test_solution_ai_tool_filter(client, alice, make_resource):
    await make_resource(ResourceKind.SOLUTION, alice, ai_tool="codex")
    cursor_kit = await make_resource(ResourceKind.SOLUTION, alice, ai_tool="cursor")

    r = await client.get("/api/solutions", params={"aiTool": "cursor"})
    assert [s["id"] for s in r.json()["data"]] == [str(cursor_kit.id)]


@pytest.mark.asyncio
async def test_apply_counts_a_download(unauthenticated_client, db_session, bob, make_resource):
    solution = await make_resource(ResourceKind.SOLUTION, bob)
    r = await unauthenticated_client.post(f"/api/solutions/{solution.id}/apply")
    assert r.status_code == 200
    assert r.json()["data"] == {"applied": str(solution.id)}

    stored = (await db_session.execute(select(Solution).where(Solution.id == solution.id))).scalars().one()
    await db_session.refresh(stored)
    assert stored.downloads == 1


def test_ownership_foreign_keys():
    """Owned rows cascade with their user; a solution pins its agent config."""
    for model in (McpConfig, AgentConfig, Skill):
        fk = next(iter(model.__table__.c.user_id.foreign_keys))
        assert fk.ondelete == "CASCADE"
    fk = next(iter(Solution.__table__.c.agent_config_id.foreign_keys))
    assert fk.ondelete == "RESTRICT"
