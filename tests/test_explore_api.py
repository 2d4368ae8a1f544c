"""Explore API tests: anonymous browsing, search, sort."""

import pytest

from configplaza.db.models import ResourceKind


@pytest.mark.asyncio
async def test_overview_shows_only_public(unauthenticated_client, alice, make_resource):
    public = await make_resource(ResourceKind.SOLUTION, alice)
    await make_resource(ResourceKind.SOLUTION, alice, is_public=False)
    skill = await make_resource(ResourceKind.SKILL, alice)

    r = await unauthenticated_client.get("/api/explore")
    assert r.status_code == 200
    data = r.json()["data"]
    assert set(data) == {"solutions", "agents", "prompts", "mcps", "skills"}
    assert [s["id"] for s in data["solutions"]] == [str(public.id)]
    assert [s["id"] for s in data["skills"]] == [str(skill.id)]
    # Each seeded solution brings its own public agent config
    assert len(data["agents"]) == 2


@pytest.mark.asyncio
async def test_overview_limit(unauthenticated_client, alice, make_resource):
    for _ in range(4):
        await make_resource(ResourceKind.CUSTOM_PROMPT, alice)
    r = await unauthenticated_client.get("/api/explore", params={"limit": 3})
    assert len(r.json()["data"]["prompts"]) == 3


@pytest.mark.asyncio
async def test_own_private_items_stay_out_of_explore(client, alice, make_resource):
    await make_resource(ResourceKind.MCP_CONFIG, alice, is_public=False)
    r = await client.get("/api/explore/mcps")
    assert r.json()["data"] == []
    assert r.json()["meta"]["total"] == 0


@pytest.mark.asyncio
async def test_search_is_case_insensitive(unauthenticated_client, alice, make_resource):
    hit_name = await make_resource(ResourceKind.CUSTOM_PROMPT, alice, name="Code Review")
    hit_desc = await make_resource(
        ResourceKind.CUSTOM_PROMPT, alice, name="pr", description="reviews pull requests"
    )
    await make_resource(ResourceKind.CUSTOM_PROMPT, alice, name="changelog")

    r = await unauthenticated_client.get("/api/explore/prompts", params={"search": "REVIEW"})
    assert {p["id"] for p in r.json()["data"]} == {str(hit_name.id), str(hit_desc.id)}


@pytest.mark.asyncio
async def test_search_skills_matches_markdown(unauthenticated_client, alice, make_resource):
    skill = await make_resource(ResourceKind.SKILL, alice, name="s1", skill_markdown="Runs ruff")
    await make_resource(ResourceKind.SKILL, alice, name="s2", skill_markdown="Runs eslint")

    r = await unauthenticated_client.get("/api/explore/skills", params={"search": "ruff"})
    assert [s["id"] for s in r.json()["data"]] == [str(skill.id)]


@pytest.mark.asyncio
async def test_search_wildcards_are_literal(unauthenticated_client, alice, make_resource):
    await make_resource(ResourceKind.MCP_CONFIG, alice, name="anything")
    r = await unauthenticated_client.get("/api/explore/mcps", params={"search": "%"})
    assert r.json()["data"] == []


@pytest.mark.asyncio
async def test_sort_by_downloads_and_likes(unauthenticated_client, alice, make_resource):
    popular = await make_resource(ResourceKind.AGENT_CONFIG, alice, downloads=50, likes=1)
    loved = await make_resource(ResourceKind.AGENT_CONFIG, alice, downloads=5, likes=9)

    r = await unauthenticated_client.get("/api/explore/agents", params={"sortBy": "downloads"})
    assert [a["id"] for a in r.json()["data"]] == [str(popular.id), str(loved.id)]

    r = await unauthenticated_client.get("/api/explore/agents")
    assert [a["id"] for a in r.json()["data"]] == [str(loved.id), str(popular.id)]


@pytest.mark.asyncio
async def test_invalid_sort_is_422(unauthenticated_client):
    r = await unauthenticated_client.get("/api/explore/agents", params={"sortBy": "random"})
    assert r.status_code == 422


@pytest.mark.asyncio
async def test_section_limit_clamped_to_50(unauthenticated_client):
    r = await unauthenticated_client.get("/api/explore/solutions", params={"limit": 500})
    assert r.json()["meta"]["limit"] == 50


@pytest.mark.asyncio
async def test_liked_flag_when_signed_in(client, alice, bob, make_resource, like):
    mcp = await make_resource(ResourceKind.MCP_CONFIG, bob)
    await like(alice, mcp)

    r = await client.get("/api/explore/mcps")
    assert r.json()["data"][0]["isLikedByCurrentUser"] is True
