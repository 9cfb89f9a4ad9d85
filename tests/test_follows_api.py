"""Follow graph tests — toggle semantics and paginated lists."""

import uuid

import pytest


@pytest.mark.asyncio
async def test_follow_toggle(client, make_account, login):
    alice = await make_account()
    bob = await make_account()
    a = await login(alice)

    r1 = await client.post(f"/api/v1/social-media/follow/{bob['id']}", headers=a["headers"])
    assert r1.status_code == 200
    assert r1.json()["data"]["following"] is True
    assert r1.json()["message"] == "Followed successfully"

    r2 = await client.post(f"/api/v1/social-media/follow/{bob['id']}", headers=a["headers"])
    assert r2.status_code == 200
    assert r2.json()["data"]["following"] is False

    profile = await client.get(f"/api/v1/social-media/profile/u/{bob['username']}")
    assert profile.json()["data"]["followersCount"] == 0


@pytest.mark.asyncio
async def test_cannot_follow_self(client, make_account, login):
    alice = await make_account()
    a = await login(alice)
    r = await client.post(f"/api/v1/social-media/follow/{alice['id']}", headers=a["headers"])
    assert r.status_code == 400


@pytest.mark.asyncio
async def test_follow_unknown_account(client, make_account, login):
    alice = await make_account()
    a = await login(alice)
    r = await client.post(f"/api/v1/social-media/follow/{uuid.uuid4()}", headers=a["headers"])
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_follow_requires_auth(client, make_account):
    bob = await make_account()
    r = await client.post(f"/api/v1/social-media/follow/{bob['id']}")
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_follower_and_following_lists(client, make_account, login):
    star = await make_account()
    fans = [await make_account() for _ in range(3)]
    for fan in fans:
        session = await login(fan)
        r = await client.post(f"/api/v1/social-media/follow/{star['id']}", headers=session["headers"])
        assert r.status_code == 200

    r = await client.get(
        f"/api/v1/social-media/follow/list/followers/{star['username']}",
        params={"page": 1, "limit": 2},
    )
    assert r.status_code == 200
    page1 = r.json()["data"]
    assert page1["total"] == 3
    assert len(page1["accounts"]) == 2
    assert page1["hasNextPage"] is True

    r2 = await client.get(
        f"/api/v1/social-media/follow/list/followers/{star['username']}",
        params={"page": 2, "limit": 2},
    )
    page2 = r2.json()["data"]
    assert len(page2["accounts"]) == 1
    assert page2["hasNextPage"] is False
    listed = {a["username"] for a in page1["accounts"] + page2["accounts"]}
    assert listed == {fan["username"] for fan in fans}

    following = await client.get(f"/api/v1/social-media/follow/list/following/{fans[0]['username']}")
    assert following.status_code == 200
    data = following.json()["data"]
    assert data["total"] == 1
    assert data["accounts"][0]["username"] == star["username"]
    assert "email" not in data["accounts"][0]


@pytest.mark.asyncio
async def test_lists_mark_accounts_the_viewer_follows(client, make_account, login):
    star = await make_account()
    fan = await make_account()
    other = await make_account()
    f = await login(fan)
    o = await login(other)
    await client.post(f"/api/v1/social-media/follow/{star['id']}", headers=f["headers"])
    await client.post(f"/api/v1/social-media/follow/{star['id']}", headers=o["headers"])
    # fan also follows other
    await client.post(f"/api/v1/social-media/follow/{other['id']}", headers=f["headers"])

    r = await client.get(
        f"/api/v1/social-media/follow/list/followers/{star['username']}", headers=f["headers"]
    )
    flags = {a["username"]: a["isFollowing"] for a in r.json()["data"]["accounts"]}
    assert flags == {fan["username"]: False, other["username"]: True}

    anon = await client.get(f"/api/v1/social-media/follow/list/followers/{star['username']}")
    assert all(a["isFollowing"] is False for a in anon.json()["data"]["accounts"])


@pytest.mark.asyncio
async def test_list_unknown_user_and_bad_paging(client):
    r = await client.get("/api/v1/social-media/follow/list/followers/nobody-here")
    assert r.status_code == 404

    r2 = await client.get(
        "/api/v1/social-media/follow/list/followers/nobody-here", params={"page": 0}
    )
    assert r2.status_code == 400
