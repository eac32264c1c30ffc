"""Tests for the /users endpoints: search, blocks and bans."""


class TestDirectory:
    """Search and profile lookup."""

    def test_search_by_fragment(self, api_client, make_user):
        _, headers = make_user("alice")
        make_user("alicia")
        make_user("bob")

        names = [u["username"] for u in api_client.get("/users?q=ALI", headers=headers).json()]
        assert names == ["alice", "alicia"]

    def test_get_profile(self, api_client, make_user):
        _, headers = make_user("alice")
        bob, _ = make_user("bob")

        resp = api_client.get(f"/users/{bob}", headers=headers)
        assert resp.json() == {"id": bob, "username": "bob", "isBanned": False}

    def test_unknown_profile(self, api_client, make_user):
        _, headers = make_user("alice")
        assert api_client.get(f"/users/{'f' * 24}", headers=headers).status_code == 404


class TestBlocks:
    """Block/unblock."""

    def test_block_then_messaging_refused_both_ways(self, api_client, make_user):
        alice, alice_h = make_user("alice")
        bob, bob_h = make_user("bob")

        assert api_client.post(f"/users/{bob}/block", headers=alice_h).status_code == 200
        assert api_client.get("/users/me/blocked", headers=alice_h).json() == {"blocked": [bob]}

        to_bob = api_client.post("/messages", json={"text": "hi", "receiver": bob}, headers=alice_h)
        to_alice = api_client.post("/messages", json={"text": "hi", "receiver": alice}, headers=bob_h)
        assert to_bob.status_code == 403
        assert to_alice.status_code == 403

    def test_block_twice(self, api_client, make_user):
        _, alice_h = make_user("alice")
        bob, _ = make_user("bob")
        api_client.post(f"/users/{bob}/block", headers=alice_h)
        assert api_client.post(f"/users/{bob}/block", headers=alice_h).status_code == 400

    def test_cannot_block_self(self, api_client, make_user):
        alice, alice_h = make_user("alice")
        assert api_client.post(f"/users/{alice}/block", headers=alice_h).status_code == 400

    def test_unblock_restores_messaging(self, api_client, make_user):
        _, alice_h = make_user("alice")
        bob, _ = make_user("bob")
        api_client.post(f"/users/{bob}/block", headers=alice_h)

        assert api_client.post(f"/users/{bob}/unblock", headers=alice_h).status_code == 200
        resp = api_client.post("/messages", json={"text": "hi", "receiver": bob}, headers=alice_h)
        assert resp.status_code == 201

    def test_unblock_without_block(self, api_client, make_user):
        _, alice_h = make_user("alice")
        bob, _ = make_user("bob")
        assert api_client.post(f"/users/{bob}/unblock", headers=alice_h).status_code == 400


class TestBans:
    """Admin ban/unban."""

    def test_banned_user_loses_access_until_unbanned(self, api_client, make_user):
        _, admin_h = make_user("root", is_admin=True)
        bob, bob_h = make_user("bob")

        assert api_client.post(f"/users/{bob}/ban", headers=admin_h).status_code == 200
        assert api_client.get("/messages", headers=bob_h).status_code == 401
        assert api_client.post(f"/users/{bob}/ban", headers=admin_h).status_code == 400

        assert api_client.post(f"/users/{bob}/unban", headers=admin_h).status_code == 200
        assert api_client.get("/messages", headers=bob_h).status_code == 200

    def test_ban_unknown_user(self, api_client, make_user):
        _, admin_h = make_user("root", is_admin=True)
        assert api_client.post(f"/users/{'f' * 24}/ban", headers=admin_h).status_code == 404


class TestFollows:
    """Follow/unfollow and the follower listings."""

    def test_follow_shows_in_both_listings(self, api_client, make_user):
        alice, alice_h = make_user("alice")
        bob, _ = make_user("bob")

        assert api_client.post(f"/users/{bob}/follow", headers=alice_h).status_code == 200

        followers = api_client.get(f"/users/{bob}/followers", headers=alice_h).json()
        following = api_client.get(f"/users/{alice}/following", headers=alice_h).json()
        assert followers == [{"id": alice, "username": "alice"}]
        assert following == [{"id": bob, "username": "bob"}]

    def test_follow_twice(self, api_client, make_user):
        _, alice_h = make_user("alice")
        bob, _ = make_user("bob")
        api_client.post(f"/users/{bob}/follow", headers=alice_h)
        assert api_client.post(f"/users/{bob}/follow", headers=alice_h).status_code == 400

    def test_cannot_follow_self(self, api_client, make_user):
        alice, alice_h = make_user("alice")
        assert api_client.post(f"/users/{alice}/follow", headers=alice_h).status_code == 400

    def test_follow_unknown_user(self, api_client, make_user):
        _, alice_h = make_user("alice")
        assert api_client.post(f"/users/{'f' * 24}/follow", headers=alice_h).status_code == 404
        assert api_client.get(f"/users/{'f' * 24}/followers", headers=alice_h).status_code == 404

    def test_unfollow(self, api_client, make_user):
        _, alice_h = make_user("alice")
        bob, _ = make_user("bob")
        api_client.post(f"/users/{bob}/follow", headers=alice_h)

        assert api_client.post(f"/users/{bob}/unfollow", headers=alice_h).status_code == 200
        assert api_client.get(f"/users/{bob}/followers", headers=alice_h).json() == []

    def test_cannot_follow_blocked_user(self, api_client, make_user):
        _, alice_h = make_user("alice")
        bob, _ = make_user("bob")
        api_client.post(f"/users/{bob}/block", headers=alice_h)
        assert api_client.post(f"/users/{bob}/follow", headers=alice_h).status_code == 400

    def test_block_drops_existing_follow(self, api_client, make_user):
        _, alice_h = make_user("alice")
        bob, _ = make_user("bob")
        api_client.post(f"/users/{bob}/follow", headers=alice_h)
        api_client.post(f"/users/{bob}/block", headers=alice_h)

        assert api_client.get(f"/users/{bob}/followers", headers=alice_h).json() == []

    def test_listings_hide_users_the_viewer_blocked(self, api_client, make_user):
        alice, alice_h = make_user("alice")
        bob, bob_h = make_user("bob")
        carol, carol_h = make_user("carol")
        api_client.post(f"/users/{carol}/follow", headers=alice_h)
        api_client.post(f"/users/{carol}/follow", headers=bob_h)
        api_client.post(f"/users/{alice}/block", headers=bob_h)

        seen_by_bob = api_client.get(f"/users/{carol}/followers", headers=bob_h).json()
        seen_by_carol = api_client.get(f"/users/{carol}/followers", headers=carol_h).json()
        assert [u["username"] for u in seen_by_bob] == ["bob"]
        assert [u["username"] for u in seen_by_carol] == ["alice", "bob"]
