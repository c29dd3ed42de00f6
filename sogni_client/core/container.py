"""
Dependency Injection Container

Implements Dependency Inversion Principle (DIP):
- Central place to configure dependencies
- Easy to swap implementations
- Easy to test (can override providers)

Uses dependency-injector library for IoC container
"""

from dependency_injector import containers, providers

from .api_client import ApiClient
from .auth import create_auth_manager
from .domain.account import CurrentAccount
from .repositories.project_repo import ProjectRepository
from .rest_client import RestClient
from .services.account_service import AccountService
from .services.event_router import EventRouter
from .services.projects_service import ProjectsService
from .socket import SocketClient, create_transport_strategy


class Container(containers.DeclarativeContainer):
    """
    Main DI Container

    One container per SogniClient. Every provider is a Singleton: the
    auth manager, the socket and the repository are shared state.
    """

    # ========== Configuration ==========
    config = providers.Configuration()

    # ========== Transport ==========
    auth_manager = providers.Singleton(
        create_auth_manager,
        auth_type=config.auth_type,
        base_url=config.rest_endpoint
    )

    rest_client = providers.Singleton(
        RestClient,
        base_url=config.rest_endpoint,
        auth=auth_manager,
        impersonate=config.impersonate,
        timeout=config.request_timeout
    )

    transport_strategy = providers.Singleton(
        create_transport_strategy,
        auth_type=config.auth_type,
        ping_interval=config.ping_interval
    )

    socket_client = providers.Singleton(
        SocketClient,
        base_url=config.socket_endpoint,
        auth=auth_manager,
        app_id=config.app_id,
        network=config.network,
        strategy=transport_strategy,
        connect_wait_attempts=config.connect_wait_attempts,
        connect_wait_interval=config.connect_wait_interval
    )

    api_client = providers.Singleton(
        ApiClient,
        app_id=config.app_id,
        auth=auth_manager,
        rest=rest_client,
        socket=socket_client,
        disable_socket=config.disable_socket,
        reconnect_attempts=config.reconnect_attempts,
        reconnect_delay=config.reconnect_delay
    )

    # ========== Repositories ==========
    project_repository = providers.Singleton(
        ProjectRepository,
        gc_timeout=config.gc_timeout
    )

    # ========== Services ==========
    event_router = providers.Singleton(
        EventRouter,
        socket=socket_client,
        rest=rest_client,
        project_repo=project_repository
    )

    current_account = providers.Singleton(CurrentAccount)

    account_service = providers.Singleton(
        AccountService,
        client=api_client,
        current_account=current_account
    )

    projects_service = providers.Singleton(
        ProjectsService,
        client=api_client,
        router=event_router,
        project_repo=project_repository
    )


def create_container(config: dict) -> Container:
    """
    Build a container from a ClientConfig dict

    Usage:
        container = create_container(ClientConfig(app_id="my-app").model_dump())
    """
    container = Container()
    container.config.from_dict(config)
    return container
