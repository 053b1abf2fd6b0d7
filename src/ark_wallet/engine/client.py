"""ArkWalletEngine: central client owning every orchestration component."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Self

from ark_wallet.engine.lifecycle import OperationLifecycleController
from ark_wallet.engine.registry import WalletRegistry
from ark_wallet.engine.session import ActiveSessionManager
from ark_wallet.engine.state import SessionState, SessionStore
from ark_wallet.service.client import WalletServiceClient
from ark_wallet.storage.client import open_store

if TYPE_CHECKING:
    from types import TracebackType

    from ark_wallet.config.settings import AppConfig
    from ark_wallet.storage.client import KeyValueStore

logger = logging.getLogger(__name__)

_ERR_NOT_INITIALIZED = "Engine not initialized. Call initialize() first."


class ArkWalletEngine:
    """Owns the service client, storage, registry, session and controller.

    Usage::

        async with ArkWalletEngine(AppConfig()) as engine:
            result = await engine.controller.create_wallet()
            print(engine.state.balance)
    """

    def __init__(
        self,
        config: AppConfig,
        *,
        client: WalletServiceClient | None = None,
        store: KeyValueStore | None = None,
    ) -> None:
        """Initialize engine with configuration.

        Args:
            config: Application configuration.
            client: Pre-built service client (tests inject mock transports here).
            store: Pre-built storage backend; opened from ``config.storage`` when omitted.
        """
        self._config = config
        self._initialized = False
        self._client = client or WalletServiceClient(config.service)
        self._store: KeyValueStore | None = store
        self._owns_store = store is None

        self._state = SessionStore()
        self._registry: WalletRegistry | None = None
        self._session: ActiveSessionManager | None = None
        self._controller: OperationLifecycleController | None = None

    async def initialize(self) -> None:
        """Connect the client, open storage and load the wallet registry.

        Raises:
            RuntimeError: If already initialized.
        """
        if self._initialized:
            msg = "Engine already initialized"
            raise RuntimeError(msg)

        if not self._client.is_connected:
            await self._client.connect()
        if self._store is None:
            self._store = open_store(self._config.storage)

        self._registry = WalletRegistry(self._store, key=self._config.storage.registry_key)
        self._registry.load()
        self._session = ActiveSessionManager(self._client, self._state)
        self._controller = OperationLifecycleController(
            self._client,
            self._registry,
            self._session,
            self._state,
            faucet_amount=self._config.faucet.default_amount,
        )
        self._initialized = True
        logger.info("Ark wallet engine initialized against %s", self._client.base_url)

    async def close(self) -> None:
        """Close the client and storage (idempotent)."""
        await self._client.close()
        if self._store is not None and self._owns_store:
            self._store.close()
            self._store = None
        if self._initialized:
            logger.info("Ark wallet engine shut down")
        self._initialized = False

    async def __aenter__(self) -> Self:
        await self.initialize()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    @property
    def config(self) -> AppConfig:
        return self._config

    @property
    def client(self) -> WalletServiceClient:
        return self._client

    @property
    def state_store(self) -> SessionStore:
        return self._state

    @property
    def state(self) -> SessionState:
        """Current session snapshot."""
        return self._state.snapshot

    @property
    def registry(self) -> WalletRegistry:
        if self._registry is None:
            raise RuntimeError(_ERR_NOT_INITIALIZED)
        return self._registry

    @property
    def session(self) -> ActiveSessionManager:
        if self._session is None:
            raise RuntimeError(_ERR_NOT_INITIALIZED)
        return self._session

    @property
    def controller(self) -> OperationLifecycleController:
        if self._controller is None:
            raise RuntimeError(_ERR_NOT_INITIALIZED)
        return self._controller

    async def health_check(self) -> dict[str, str]:
        """Report the status of each component."""
        storage = "ok" if self._store is not None else "closed"
        if self._registry is not None and self._registry.last_warning is not None:
            storage = "degraded"
        return {
            "engine": "ok" if self._initialized else "not_initialized",
            "service": "ok" if self._client.is_connected else "disconnected",
            "storage": storage,
        }
