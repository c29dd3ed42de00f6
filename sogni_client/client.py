"""
Sogni Client

Entry point of the package. Wires the container and exposes the
account and projects services.

Usage:
    async with await SogniClient.create_instance(app_id="my-app") as client:
        await client.account.login({"refresh_token": saved_refresh_token})
        await client.projects.wait_for_models()
        project = await client.projects.create(ProjectParams(...))
        urls = await project.wait_for_completion()
"""
import logging
from typing import Dict, List, Optional

from .config import ClientConfig
from .core.api_client import ApiClient
from .core.container import Container, create_container
from .core.domain.account import CurrentAccount
from .core.logger import LogStreamManager, setup_logging
from .core.services.account_service import AccountService
from .core.services.projects_service import ProjectsService

logger = logging.getLogger(__name__)


class SogniClient:
    def __init__(self, config: ClientConfig, container: Optional[Container] = None):
        self.config = config
        self.log_stream: LogStreamManager = setup_logging(config.log_level)
        self.container = container or create_container(config.model_dump())

        # Creation order matters: ApiClient must see auth updates first
        self.api_client: ApiClient = self.container.api_client()
        self.account: AccountService = self.container.account_service()
        self.projects: ProjectsService = self.container.projects_service()

    @classmethod
    async def create_instance(cls, **kwargs) -> "SogniClient":
        """
        Build a client from ClientConfig fields

        Raises:
            pydantic.ValidationError: If the configuration is invalid
        """
        client = cls(ClientConfig(**kwargs))
        logger.info(f"[START] SogniClient created (app_id={client.config.app_id}, network={client.config.network})")
        return client

    @property
    def current_account(self) -> CurrentAccount:
        return self.account.current_account

    def recent_logs(self, limit: Optional[int] = None) -> List[Dict[str, str]]:
        return self.log_stream.recent(limit)

    async def close(self):
        """Stop reconnecting, drop the socket and cancel pending URL lookups"""
        self.api_client.close()
        await self.container.event_router().close()
        logger.info("[STOP] SogniClient closed")

    async def __aenter__(self) -> "SogniClient":
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()
