"""Tests for ReadStateTracker and the unread aggregator."""
import pytest

from app.errors import StorageError


@pytest.fixture
def alice(services):
    return services.users.create("alice").id


@pytest.fixture
def bob(services):
    return services.users.create("bob").id


def _online(services, fake_socket, user_id):
    ws = fake_socket()
    conn = services.registry.register(ws)
    services.registry.bind(conn, user_id)
    return ws, conn


class TestMarkConversationRead:
    """Tests for ReadStateTracker.mark_conversation_read."""

    def test_marks_only_that_conversation(self, services, alice, bob):
        carol = services.users.create("carol").id
        services.messages.insert(alice, bob, "1")
        services.messages.insert(alice, bob, "2")
        services.messages.insert(carol, bob, "3")

        assert services.read_state.mark_conversation_read(bob, alice) == 2
        assert services.unread.unread_counts(bob) == {carol: 1}

    def test_direction_matters(self, services, alice, bob):
        services.messages.insert(bob, alice, "from bob")
        # Bob reading "alice -> bob" does not touch his own outgoing messages
        assert services.read_state.mark_conversation_read(bob, alice) == 0
        assert services.unread.unread_counts(alice) == {bob: 1}

    def test_idempotent(self, services, alice, bob):
        services.messages.insert(alice, bob, "hi")
        assert services.read_state.mark_conversation_read(bob, alice) == 1
        assert services.read_state.mark_conversation_read(bob, alice) == 0
        assert services.unread.unread_counts(bob) == {}

    def test_deleted_messages_never_become_read(self, services, alice, bob):
        message = services.messages.insert(alice, bob, "oops")
        services.messages.soft_delete(message.id, alice)

        assert services.read_state.mark_conversation_read(bob, alice) == 0
        stored = services.messages.get(message.id)
        assert stored.isDeleted is True
        assert stored.isRead is False

    def test_soft_delete_clears_read_flag(self, services, alice, bob):
        message = services.messages.insert(alice, bob, "seen", is_read=True)
        deleted = services.messages.soft_delete(message.id, alice)
        assert deleted.isDeleted is True
        assert deleted.isRead is False

    def test_deleted_and_read_rejected_by_store(self, services, alice, bob):
        message = services.messages.insert(alice, bob, "x")
        services.messages.soft_delete(message.id, alice)
        with pytest.raises(StorageError):
            services.database.execute(
                "UPDATE messages SET is_read = TRUE WHERE id = ?", [message.id]
            )

    @pytest.mark.asyncio
    async def test_sender_viewing_chat_is_told(self, services, fake_socket, alice, bob):
        alice_ws, alice_conn = _online(services, fake_socket, alice)
        services.registry.enter_chat(alice_conn, bob)
        services.messages.insert(alice, bob, "read me")

        services.read_state.mark_conversation_read(bob, alice)
        await services.registry.flush()

        assert alice_ws.events("messagesRead") == [{"type": "messagesRead", "by": bob}]

    @pytest.mark.asyncio
    async def test_sender_elsewhere_is_not_told(self, services, fake_socket, alice, bob):
        alice_ws, _ = _online(services, fake_socket, alice)
        services.messages.insert(alice, bob, "read me")

        services.read_state.mark_conversation_read(bob, alice)
        await services.registry.flush()

        assert alice_ws.events("messagesRead") == []

    @pytest.mark.asyncio
    async def test_no_change_no_push(self, services, fake_socket, alice, bob):
        alice_ws, alice_conn = _online(services, fake_socket, alice)
        services.registry.enter_chat(alice_conn, bob)

        assert services.read_state.mark_conversation_read(bob, alice) == 0
        await services.registry.flush()

        assert alice_ws.sent == []


class TestMarkNotificationsRead:
    """Tests for ReadStateTracker.mark_notifications_read."""

    @pytest.mark.asyncio
    async def test_marks_all_and_syncs_sessions(self, services, fake_socket, bob):
        tab1, _ = _online(services, fake_socket, bob)
        tab2, _ = _online(services, fake_socket, bob)
        services.notifications.create(bob, "one")
        services.notifications.create(bob, "two")

        assert services.read_state.mark_notifications_read(bob) == 2
        await services.registry.flush()

        assert services.notifications.unread_count(bob) == 0
        for ws in (tab1, tab2):
            assert ws.events("notificationsRead") == [{"type": "notificationsRead"}]

    def test_idempotent(self, services, bob):
        services.notifications.create(bob, "one")
        assert services.read_state.mark_notifications_read(bob) == 1
        assert services.read_state.mark_notifications_read(bob) == 0

    def test_other_users_untouched(self, services, alice, bob):
        services.notifications.create(alice, "mine")
        services.notifications.create(bob, "yours")
        services.read_state.mark_notifications_read(bob)
        assert services.notifications.unread_count(alice) == 1


class TestUnreadAggregator:
    """Tests for UnreadAggregator."""

    def test_counts_grouped_by_sender(self, services, alice, bob):
        carol = services.users.create("carol").id
        for _ in range(3):
            services.messages.insert(alice, bob, "a")
        services.messages.insert(carol, bob, "c")

        assert services.unread.unread_counts(bob) == {alice: 3, carol: 1}
        assert services.unread.total_unread(bob) == 4

    def test_total_matches_stored_unread_rows(self, services, alice, bob):
        services.messages.insert(alice, bob, "1")
        services.messages.insert(alice, bob, "2", is_read=True)
        removed = services.messages.insert(alice, bob, "3")
        services.messages.soft_delete(removed.id, alice)

        row = services.database.fetchone(
            "SELECT COUNT(*) FROM messages "
            "WHERE receiver_id = ? AND is_read = FALSE AND is_deleted = FALSE",
            [bob],
        )
        assert services.unread.total_unread(bob) == row[0] == 1

    def test_empty_for_new_user(self, services, alice):
        assert services.unread.unread_counts(alice) == {}
        assert services.unread.total_unread(alice) == 0
