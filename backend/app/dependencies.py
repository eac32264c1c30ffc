"""Application service container.

All collaborators are built once per application and kept on
``app.state.services``; routes and the WebSocket endpoint receive them
through ``Depends(get_services)``. The container is created lazily so that
importing the app never opens the database.
"""
import logging
from dataclasses import dataclass

from starlette.requests import HTTPConnection

from app.auth.service import TokenService
from app.config import AppConfig, get_config
from app.database import Database
from app.messages.service import MessageStore
from app.notifications.service import NotificationStore
from app.realtime.delivery import DeliveryRouter
from app.realtime.liveness import LivenessSupervisor
from app.realtime.read_state import ReadStateTracker
from app.realtime.registry import ConnectionRegistry
from app.realtime.unread import UnreadAggregator
from app.todos.service import TodoStore
from app.users.service import UserDirectory

logger = logging.getLogger(__name__)


@dataclass
class Services:
    config: AppConfig
    database: Database
    tokens: TokenService
    users: UserDirectory
    messages: MessageStore
    notifications: NotificationStore
    todos: TodoStore
    registry: ConnectionRegistry
    delivery: DeliveryRouter
    read_state: ReadStateTracker
    unread: UnreadAggregator
    supervisor: LivenessSupervisor

    def close(self) -> None:
        self.database.close()


def build_services(config: AppConfig) -> Services:
    """Wire every collaborator against one database and one registry."""
    database = Database(config.database.path)
    users = UserDirectory(database)
    messages = MessageStore(database)
    notifications = NotificationStore(database)
    registry = ConnectionRegistry()

    services = Services(
        config=config,
        database=database,
        tokens=TokenService(config.secrets.jwt.secret_key, config.secrets.jwt.algorithm),
        users=users,
        messages=messages,
        notifications=notifications,
        todos=TodoStore(database),
        registry=registry,
        delivery=DeliveryRouter(registry, messages, notifications, users),
        read_state=ReadStateTracker(registry, messages, notifications),
        unread=UnreadAggregator(messages),
        supervisor=LivenessSupervisor(registry, config.realtime.heartbeat_interval_seconds),
    )
    logger.info("Services ready (database=%s)", database.path)
    return services


def services_for(app) -> Services:
    """Return the app's services, building them on first use."""
    services = getattr(app.state, "services", None)
    if services is None:
        config = getattr(app.state, "config", None) or get_config()
        services = build_services(config)
        app.state.services = services
    return services


def get_services(connection: HTTPConnection) -> Services:
    """FastAPI dependency (works for both HTTP requests and WebSockets)."""
    return services_for(connection.app)
