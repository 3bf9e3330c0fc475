"""
Tests for profiles, following and admin account management.
"""
from filmfolk.models.account import Account

USERS = "/api/v1/users"


def _follow(client, auth_headers, who, whom):
    return client.post(f"{USERS}/{whom.id}/follow", headers=auth_headers(who))


class TestProfiles:
    def test_public_profile_hides_email(self, client, user):
        resp = client.get(f"{USERS}/{user.id}")
        assert resp.status_code == 200
        data = resp.get_json()
        assert data["username"] == user.username
        assert "email" not in data

    def test_unknown_profile(self, client):
        assert client.get(f"{USERS}/nope").status_code == 404

    def test_update_me(self, client, user, auth_headers):
        resp = client.put(
            f"{USERS}/me", json={"bio": "I like long films.", "avatar_url": "https://example.com/a.png"},
            headers=auth_headers(user),
        )
        assert resp.status_code == 200
        assert resp.get_json()["bio"] == "I like long films."
        assert client.get(f"{USERS}/{user.id}").get_json()["avatar_url"] == "https://example.com/a.png"

    def test_update_me_validation(self, client, user, auth_headers):
        resp = client.put(f"{USERS}/me", json={"avatar_url": "not a url"}, headers=auth_headers(user))
        assert resp.status_code == 400

    def test_user_reviews(self, client, user, make_movie, auth_headers):
        movie = make_movie()
        client.post(
            "/api/v1/reviews", json={"movie_id": movie.id, "rating": 9, "review_text": "Loved every minute."},
            headers=auth_headers(user),
        )
        body = client.get(f"{USERS}/{user.id}/reviews").get_json()
        assert body["meta"]["total"] == 1
        assert body["data"][0]["movie_id"] == movie.id


class TestFollow:
    def test_follow_and_counts(self, client, make_account, auth_headers):
        a, b = make_account(), make_account()
        resp = _follow(client, auth_headers, a, b)
        assert resp.status_code == 201

        assert client.get(f"{USERS}/{b.id}").get_json()["followers_count"] == 1
        assert client.get(f"{USERS}/{a.id}").get_json()["following_count"] == 1
        status = client.get(f"{USERS}/{b.id}/follow/status", headers=auth_headers(a)).get_json()
        assert status == {"is_following": True}

    def test_follow_self(self, client, user, auth_headers):
        assert _follow(client, auth_headers, user, user).status_code == 400

    def test_follow_unknown(self, client, user, auth_headers):
        resp = client.post(f"{USERS}/nope/follow", headers=auth_headers(user))
        assert resp.status_code == 404

    def test_follow_twice(self, client, make_account, auth_headers):
        a, b = make_account(), make_account()
        _follow(client, auth_headers, a, b)
        assert _follow(client, auth_headers, a, b).status_code == 409

    def test_unfollow(self, client, make_account, auth_headers):
        a, b = make_account(), make_account()
        _follow(client, auth_headers, a, b)
        url = f"{USERS}/{b.id}/follow"
        assert client.delete(url, headers=auth_headers(a)).status_code == 200
        assert client.delete(url, headers=auth_headers(a)).status_code == 404
        assert client.get(f"{USERS}/{b.id}").get_json()["followers_count"] == 0
        assert client.get(f"{USERS}/{a.id}").get_json()["following_count"] == 0

    def test_unfollow_self(self, client, user, auth_headers):
        assert client.delete(f"{USERS}/{user.id}/follow", headers=auth_headers(user)).status_code == 400

    def test_followers_and_following_lists(self, client, make_account, auth_headers):
        star = make_account(username="star")
        fans = [make_account(username=f"fan{i}") for i in range(3)]
        for fan in fans:
            _follow(client, auth_headers, fan, star)

        followers = client.get(f"{USERS}/{star.id}/followers").get_json()
        assert followers["meta"]["total"] == 3
        assert {f["username"] for f in followers["data"]} == {"fan0", "fan1", "fan2"}

        following = client.get(f"{USERS}/{fans[0].id}/following").get_json()
        assert [f["username"] for f in following["data"]] == ["star"]


class TestAdminAccounts:
    def test_suspend_revokes_refresh_tokens(self, client, admin, auth_headers):
        tokens = client.post(
            "/api/v1/auth/register", json={"username": "bad_actor", "email": "bad@x.com", "password": "password123"}
        ).get_json()
        me = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {tokens['access_token']}"}).get_json()

        resp = client.post(f"/api/v1/admin/users/{me['id']}/status",
                           json={"status": "suspended"}, headers=auth_headers(admin))
        assert resp.status_code == 200
        assert resp.get_json()["status"] == "suspended"

        resp = client.post("/api/v1/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
        assert resp.status_code == 401
        resp = client.post("/api/v1/auth/login", json={"email": "bad@x.com", "password": "password123"})
        assert resp.status_code == 403

    def test_status_requires_admin(self, client, moderator, user, auth_headers):
        resp = client.post(f"/api/v1/admin/users/{user.id}/status", json={"status": "banned"},
                           headers=auth_headers(moderator))
        assert resp.status_code == 403

    def test_invalid_status(self, client, admin, user, auth_headers):
        resp = client.post(f"/api/v1/admin/users/{user.id}/status", json={"status": "deleted"},
                           headers=auth_headers(admin))
        assert resp.status_code == 400

    def test_set_role(self, client, storage, admin, user, auth_headers):
        resp = client.post(f"/api/v1/admin/users/{user.id}/role", json={"role": "moderator"},
                           headers=auth_headers(admin))
        assert resp.status_code == 200
        assert storage.get(Account, user.id).role.value == "moderator"
