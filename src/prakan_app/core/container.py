"""Application dependency container."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from prakan_app.core.config import AppConfig, ensure_encryption_key, load_config
from prakan_app.core.crypto import CryptoService
from prakan_app.core.errors import PersistenceWarning
from prakan_app.core.logger import configure_logging, get_logger
from prakan_app.repositories.blob_gateway import SqliteBlobGateway
from prakan_app.repositories.db_pool import ThreadLocalConnection
from prakan_app.repositories.schema import initialize_schema
from prakan_app.services.policy_service import PolicyService
from prakan_app.services.record_store import RecordStore
from prakan_app.services.transfer_service import TransferService
from prakan_app.services.view_pipeline import ViewPipeline

logger = get_logger(__name__)


@dataclass
class ServiceContainer:
    """Wires the store, its view and the services around it."""

    config: AppConfig
    store: RecordStore
    view: ViewPipeline
    policy_service: PolicyService
    transfer_service: TransferService
    load_warnings: list[PersistenceWarning] = field(default_factory=list)


def build_container(config_path: Path | None = None) -> ServiceContainer:
    """Build dependencies, load the stored collection and attach the view."""
    config = load_config(config_path)
    configure_logging(config.logging)

    encryption_key = ensure_encryption_key(config)
    crypto = CryptoService.from_base64_key(encryption_key) if encryption_key else None

    pool = ThreadLocalConnection(config.storage)
    initialize_schema(pool)
    gateway = SqliteBlobGateway(pool, config.storage.namespace, crypto)

    store = RecordStore(gateway)
    load_warnings = store.load()
    store.drain_warnings()

    view = ViewPipeline(page_size=config.view.page_size)
    view.attach(store)
    logger.info("Store ready with %d records at %s", len(store), config.storage.path)

    return ServiceContainer(
        config=config,
        store=store,
        view=view,
        policy_service=PolicyService(store),
        transfer_service=TransferService(store),
        load_warnings=load_warnings,
    )
