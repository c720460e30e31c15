"""
Application wiring.

build_app() assembles one App per process: storage, navigator and session
first, then one ServiceClient per backend, each wired so a 401 expires the
session no matter which service returned it.
"""

import logging
from concurrent.futures import ThreadPoolExecutor

from ministrycrm.api.client import ServiceClient
from ministrycrm.api.core import CoreAPI
from ministrycrm.api.reservations import ReservationsAPI
from ministrycrm.api.studies import StudiesAPI
from ministrycrm.bus.events import bus as default_bus
from ministrycrm.session.auth import AuthSession
from ministrycrm.session.navigator import Navigator
from ministrycrm.session.storage import LocalStorage

logger = logging.getLogger(__name__)


class App:
    """Everything a page or command needs, passed explicitly."""

    def __init__(self, storage, navigator, session, core, studies, reservations, bus, executor, config):
        self.storage = storage
        self.navigator = navigator
        self.session = session
        self.core = core
        self.studies = studies
        self.reservations = reservations
        self.bus = bus
        self.executor = executor
        self.config = config

    def close(self):
        # Let an in-flight revalidation finish before its HTTP session closes
        self.executor.shutdown(wait=True)
        for api in (self.core, self.studies, self.reservations):
            api.client.close()


def build_app(config=None, bus=None) -> App:
    if config is None:
        from ministrycrm.config import config
    if bus is None:
        bus = default_bus

    storage = LocalStorage(config.STORAGE_PATH)
    navigator = Navigator(bus)
    session = AuthSession(storage, navigator, bus)

    def client(name: str, base_url: str) -> ServiceClient:
        return ServiceClient(
            name,
            base_url,
            storage,
            timeout=config.REQUEST_TIMEOUT_SECONDS,
            on_unauthorized=session.expire,
        )

    core = CoreAPI(client('core', config.CORE_API_URL))
    studies = StudiesAPI(client('studies', config.STUDY_API_URL))
    reservations = ReservationsAPI(client('reservations', config.RESERVATION_API_URL))
    session.core = core

    executor = ThreadPoolExecutor(max_workers=config.FETCH_WORKERS, thread_name_prefix='fetch')
    logger.debug(
        f"App built: core={config.CORE_API_URL} studies={config.STUDY_API_URL} "
        f"reservations={config.RESERVATION_API_URL}"
    )
    return App(storage, navigator, session, core, studies, reservations, bus, executor, config)
