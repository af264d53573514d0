from datetime import date
from functools import lru_cache
import logging
from zoneinfo import ZoneInfo

from academy_booking.application.ports.availability import AvailabilityPort
from academy_booking.application.ports.booking_backend import BookingBackendPort
from academy_booking.application.ports.catalog import CatalogPort
from academy_booking.application.ports.identity import IdentityPort
from academy_booking.application.ports.key_value_store import KeyValueStorePort
from academy_booking.application.use_cases.booking_session import BookingSessionFactory
from academy_booking.application.use_cases.draft_store import DraftStore
from academy_booking.application.utils.dates import today_in
from academy_booking.core.config import settings
from academy_booking.domain.entities.discount import DiscountPolicy
from academy_booking.infrastructure.backend.client import BackendClient
from academy_booking.infrastructure.backend.gateway import AcademyBackendGateway, IdentityGateway
from academy_booking.infrastructure.backend.mock_backend import MockAcademyBackend
from academy_booking.infrastructure.store.json_store import JsonKeyValueStore
from academy_booking.infrastructure.store.memory_store import MemoryKeyValueStore
from academy_booking.infrastructure.store.session_registry import MemorySessionRegistry


_draft_backing_store: KeyValueStorePort | None = None


def _is_local() -> bool:
    return settings.ENV.lower() in {"dev", "local"}


def academy_today() -> date:
    return today_in(ZoneInfo(settings.ACADEMY_TIMEZONE))


@lru_cache
def get_backend() -> tuple[AvailabilityPort, BookingBackendPort, CatalogPort, IdentityPort]:
    logger = logging.getLogger(__name__)
    if not settings.BACKEND_API_URL:
        if _is_local():
            logger.info("Using MockAcademyBackend (BACKEND_API_URL missing, ENV=dev/local)")
            mock = MockAcademyBackend(today=academy_today())
            return mock, mock, mock, mock
        raise ValueError("BACKEND_API_URL is required outside dev/local.")

    logger.info("Using academy backend at %s", settings.BACKEND_API_URL)
    client = BackendClient(base_url=settings.BACKEND_API_URL, timeout=settings.BACKEND_TIMEOUT_SECONDS)
    gateway = AcademyBackendGateway(client)
    return gateway, gateway, gateway, IdentityGateway(client)


def get_draft_backing_store() -> KeyValueStorePort:
    global _draft_backing_store
    if _draft_backing_store is None:
        if _is_local():
            _draft_backing_store = JsonKeyValueStore(data_dir=settings.DRAFT_STORE_DIR)
        else:
            _draft_backing_store = MemoryKeyValueStore()
    return _draft_backing_store


@lru_cache
def get_draft_store() -> DraftStore:
    return DraftStore(store=get_draft_backing_store(), today=academy_today)


@lru_cache
def get_session_factory() -> BookingSessionFactory:
    availability, backend, catalog, identity = get_backend()
    return BookingSessionFactory(
        catalog=catalog,
        identity=identity,
        availability=availability,
        backend=backend,
        drafts=get_draft_store(),
        today=academy_today,
        discount_policy=DiscountPolicy(settings.DISCOUNT_POLICY.lower()),
        checkout_path_prefix=settings.CHECKOUT_PATH_PREFIX,
    )


@lru_cache
def get_session_registry() -> MemorySessionRegistry:
    return MemorySessionRegistry()
