"""Profile API tests — the aggregated profile view and profile edits.

Learn: The profile page combines profile + account + follow counts +
"does the viewer follow this person?". The viewer is optional on the
public route: a bad token must degrade to anonymous, never to a 401/500.
"""

import uuid

import pytest

from socialnet.db.models import Follow
from socialnet.services.profile_service import ProfileService


# ═══════════════════════════════════════════════════════════
# Aggregated view
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_own_profile(client, make_account, login):
    acct = await make_account(verify=True)
    session = await login(acct)

    r = await client.get("/api/v1/social-media/profile", headers=session["headers"])
    assert r.status_code == 200
    profile = r.json()["data"]
    assert profile["owner"] == acct["id"]
    assert profile["account"]["username"] == acct["username"]
    assert profile["account"]["isEmailVerified"] is True
    assert profile["followersCount"] == 0
    assert profile["followingCount"] == 0
    assert profile["isFollowing"] is False
    assert profile["coverImage"]["url"]


@pytest.mark.asyncio
async def test_own_profile_requires_auth(client):
    r = await client.get("/api/v1/social-media/profile")
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_public_profile_counts_and_relation(client, make_account, login):
    alice = await make_account()
    bob = await make_account()
    carol = await make_account()
    a = await login(alice)
    c = await login(carol)

    # alice and carol follow bob; bob follows nobody
    assert (await client.post(f"/api/v1/social-media/follow/{bob['id']}", headers=a["headers"])).status_code == 200
    assert (await client.post(f"/api/v1/social-media/follow/{bob['id']}", headers=c["headers"])).status_code == 200

    r = await client.get(f"/api/v1/social-media/profile/u/{bob['username']}", headers=a["headers"])
    assert r.status_code == 200
    profile = r.json()["data"]
    assert profile["followersCount"] == 2
    assert profile["followingCount"] == 0
    assert profile["isFollowing"] is True

    # alice looking at herself is never "following"
    own = await client.get(f"/api/v1/social-media/profile/u/{alice['username']}", headers=a["headers"])
    assert own.json()["data"]["isFollowing"] is False
    assert own.json()["data"]["followingCount"] == 1


@pytest.mark.asyncio
async def test_public_profile_anonymous_and_bad_token(client, make_account):
    bob = await make_account()

    anon = await client.get(f"/api/v1/social-media/profile/u/{bob['username']}")
    assert anon.status_code == 200
    assert anon.json()["data"]["isFollowing"] is False

    bad = await client.get(
        f"/api/v1/social-media/profile/u/{bob['username']}",
        headers={"Authorization": "Bearer not.a.token"},
    )
    assert bad.status_code == 200
    assert bad.json()["data"]["isFollowing"] is False


@pytest.mark.asyncio
async def test_public_profile_unknown_user(client):
    r = await client.get("/api/v1/social-media/profile/u/nobody-here")
    assert r.status_code == 404
    assert r.json()["success"] is False


@pytest.mark.asyncio
async def test_self_edge_never_reads_as_following(client, db_session, make_account):
    acct = await make_account()
    account_id = uuid.UUID(acct["id"])
    # the follow endpoint refuses self-follows, so write the edge directly
    db_session.add(Follow(follower_id=account_id, followee_id=account_id))
    await db_session.commit()

    view = await ProfileService(db_session).get_profile(account_id, account_id)
    assert view.is_following is False
    assert view.followers_count == 1
    assert view.following_count == 1


# ═══════════════════════════════════════════════════════════
# Edits
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_update_profile_partial(client, make_account, login):
    acct = await make_account()
    session = await login(acct)

    r = await client.patch(
        "/api/v1/social-media/profile",
        json={
            "bio": "I write software for fun",
            "location": "Lisbon",
            "interests": ["chess", "climbing"],
            "socialLinks": {"github": "https://github.com/someone"},
        },
        headers=session["headers"],
    )
    assert r.status_code == 200
    profile = r.json()["data"]
    assert profile["bio"] == "I write software for fun"
    assert profile["location"] == "Lisbon"
    assert profile["interests"] == ["chess", "climbing"]
    assert profile["socialLinks"]["github"] == "https://github.com/someone"

    # a later partial update keeps earlier fields and links
    r2 = await client.patch(
        "/api/v1/social-media/profile",
        json={"socialLinks": {"twitter": "https://twitter.com/someone"}},
        headers=session["headers"],
    )
    assert r2.status_code == 200
    profile = r2.json()["data"]
    assert profile["bio"] == "I write software for fun"
    assert profile["socialLinks"] == {
        "github": "https://github.com/someone",
        "twitter": "https://twitter.com/someone",
    }


@pytest.mark.asyncio
async def test_update_profile_validation(client, make_account, login):
    acct = await make_account()
    session = await login(acct)

    r = await client.patch(
        "/api/v1/social-media/profile",
        json={"website": "not a url", "phoneNumber": "12ab"},
        headers=session["headers"],
    )
    assert r.status_code == 400
    fields = {e["field"] for e in r.json()["errors"]}
    assert {"website", "phoneNumber"} <= fields


@pytest.mark.asyncio
async def test_update_cover_image(client, make_account, login):
    acct = await make_account()
    session = await login(acct)

    r = await client.patch(
        "/api/v1/social-media/profile/cover-image",
        files={"coverImage": ("cover.png", b"\x89PNG cover", "image/png")},
        headers=session["headers"],
    )
    assert r.status_code == 200
    cover = r.json()["data"]["coverImage"]
    assert cover["url"].startswith("/media/")

    profile = await client.get("/api/v1/social-media/profile", headers=session["headers"])
    assert profile.json()["data"]["coverImage"]["url"] == cover["url"]


@pytest.mark.asyncio
async def test_update_profile_rejects_null_for_required_fields(client, make_account, login):
    acct = await make_account()
    session = await login(acct)
    seeded = await client.patch(
        "/api/v1/social-media/profile",
        json={"bio": "I write software for fun", "location": "Lisbon", "interests": ["chess"]},
        headers=session["headers"],
    )
    assert seeded.status_code == 200

    for field in ("bio", "location", "interests", "socialLinks", "phoneNumber"):
        r = await client.patch(
            "/api/v1/social-media/profile", json={field: None}, headers=session["headers"]
        )
        assert r.status_code == 400, field
        assert r.json()["success"] is False
        assert [e["field"] for e in r.json()["errors"]] == [field]

    profile = (await client.get("/api/v1/social-media/profile", headers=session["headers"])).json()["data"]
    assert profile["bio"] == "I write software for fun"
    assert profile["location"] == "Lisbon"
    assert profile["interests"] == ["chess"]


@pytest.mark.asyncio
async def test_update_profile_can_clear_dob(client, make_account, login):
    acct = await make_account()
    session = await login(acct)

    r = await client.patch(
        "/api/v1/social-media/profile", json={"dob": "1990-04-01"}, headers=session["headers"]
    )
    assert r.json()["data"]["dob"] == "1990-04-01"

    r = await client.patch(
        "/api/v1/social-media/profile", json={"dob": None}, headers=session["headers"]
    )
    assert r.status_code == 200
    assert r.json()["data"]["dob"] is None
