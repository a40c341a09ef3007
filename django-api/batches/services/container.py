"""Wires stores, collaborators and services together."""

from collections.abc import Callable
from dataclasses import dataclass

from events.services.event_service import EventService
from events.stores.django_store import DjangoEventStore

from batches.services.batch_persister import BatchPersister
from batches.services.batch_service import BatchService
from batches.services.lifecycle_service import LifecycleService
from batches.services.registration_editor import RegistrationEditor
from batches.services.spreadsheet import SpreadsheetParser, SpreadsheetValidator
from batches.services.storage import FileStorage
from batches.services.validation_cache import ValidationCache
from batches.stores.django_store import DjangoBatchStore, DjangoSchoolStore
from batches.stores.unit_of_work import UnitOfWork


@dataclass(frozen=True)
class BatchServices:
    batches: BatchService
    editor: RegistrationEditor
    lifecycle: LifecycleService
    persister: BatchPersister
    cache: ValidationCache


def build_batch_services(
    excel_parser: SpreadsheetParser,
    csv_parser: SpreadsheetParser,
    storage: FileStorage | None = None,
    cache: ValidationCache | None = None,
    uow_factory: Callable[[], UnitOfWork] | None = None,
    event_service: EventService | None = None,
) -> BatchServices:
    store = DjangoBatchStore()
    event_store = DjangoEventStore()
    event_service = event_service or EventService(event_store)
    cache = cache or ValidationCache()
    persister = BatchPersister(store, uow_factory=uow_factory)
    return BatchServices(
        batches=BatchService(
            store=store,
            school_store=DjangoSchoolStore(),
            event_service=event_service,
            validator=SpreadsheetValidator(excel_parser, csv_parser),
            cache=cache,
            persister=persister,
            storage=storage,
        ),
        editor=RegistrationEditor(store, event_store, uow_factory=uow_factory),
        lifecycle=LifecycleService(store),
        persister=persister,
        cache=cache,
    )
