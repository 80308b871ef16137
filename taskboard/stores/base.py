"""The storage contract every backend implements.

A store is constructed once at startup, opened, and handed to the routes. All
operations open the underlying handle on first use, so calling ``open()``
explicitly is optional.
"""

from abc import ABC, abstractmethod

from taskboard.errors import InvalidRecordError, UnsupportedOperationError
from taskboard.records import RECORD_TYPES, Dataset, Entity, MessageRecord, Record, TaskRecord


class TaskStore(ABC):
    kind: str = ''
    label: str = ''

    @abstractmethod
    def open(self) -> None:
        """Establish the connection or handle. Safe to call more than once."""

    @abstractmethod
    def close(self) -> None:
        ...

    @abstractmethod
    def initialize_schema(self) -> list[str]:
        """Create tables/collections and indexes if absent and return their names."""

    @abstractmethod
    def list_all(self, entity: Entity) -> list[Record]:
        ...

    @abstractmethod
    def get_by_id(self, entity: Entity, record_id: str) -> Record | None:
        ...

    @abstractmethod
    def create(self, entity: Entity, record: Record) -> Record:
        ...

    @abstractmethod
    def update(self, entity: Entity, record_id: str, fields: dict) -> Record:
        """Merge ``fields`` into the stored record; raises RecordNotFoundError for a missing id."""

    @abstractmethod
    def delete(self, entity: Entity, record_id: str) -> bool:
        ...

    @abstractmethod
    def tasks_by_assignee(self, user_id: str) -> list[TaskRecord]:
        ...

    @abstractmethod
    def messages_between(self, first_user_id: str, second_user_id: str) -> list[MessageRecord]:
        """Both directions of a conversation, oldest first."""

    @abstractmethod
    def replace_all(self, dataset: Dataset) -> dict[str, int]:
        """Wipe every collection and insert ``dataset``; returns the inserted counts."""

    def __enter__(self) -> 'TaskStore':
        self.open()
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


def ensure_record_type(entity: Entity, record: Record) -> None:
    if not isinstance(record, RECORD_TYPES[entity]):
        raise InvalidRecordError(f'Expected a {RECORD_TYPES[entity].__name__} for {entity.value}.')


def ensure_mutable(entity: Entity) -> None:
    if entity is Entity.MESSAGES:
        raise UnsupportedOperationError('Messages cannot be changed or deleted once sent.')
