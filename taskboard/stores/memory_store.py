"""Process-local store used when no database driver is available."""

from threading import RLock

from taskboard.errors import DuplicateRecordError, RecordNotFoundError
from taskboard.records import Dataset, Entity, MessageRecord, Record, TaskRecord, UserRecord, merge_record
from taskboard.stores.base import TaskStore, ensure_mutable, ensure_record_type


class MemoryStore(TaskStore):
    kind = 'memory'
    label = 'in-memory store'

    def __init__(self) -> None:
        self._lock = RLock()
        self._collections: dict[Entity, dict[str, Record]] | None = None

    def open(self) -> None:
        with self._lock:
            if self._collections is None:
                self._collections = {entity: {} for entity in Entity}

    def close(self) -> None:
        # Records live as long as the process; nothing to release.
        pass

    def initialize_schema(self) -> list[str]:
        self.open()
        return [entity.value for entity in Entity]

    def _collection(self, entity: Entity) -> dict[str, Record]:
        if self._collections is None:
            self.open()
        return self._collections[entity]

    def list_all(self, entity: Entity) -> list[Record]:
        with self._lock:
            return [record.model_copy() for record in self._collection(entity).values()]

    def get_by_id(self, entity: Entity, record_id: str) -> Record | None:
        with self._lock:
            record = self._collection(entity).get(record_id)
            return record.model_copy() if record is not None else None

    def create(self, entity: Entity, record: Record) -> Record:
        ensure_record_type(entity, record)

        with self._lock:
            collection = self._collection(entity)
            if record.id in collection:
                raise DuplicateRecordError(f'{entity.label} with id {record.id} already exists.')
            if entity is Entity.USERS:
                self._ensure_email_available(record)
            collection[record.id] = record.model_copy()

        return record

    def update(self, entity: Entity, record_id: str, fields: dict) -> Record:
        ensure_mutable(entity)

        with self._lock:
            collection = self._collection(entity)
            existing = collection.get(record_id)
            if existing is None:
                raise RecordNotFoundError(entity.label, record_id)

            updated = merge_record(entity, existing, fields)
            if entity is Entity.USERS:
                self._ensure_email_available(updated)
            collection[record_id] = updated

        return updated.model_copy()

    def delete(self, entity: Entity, record_id: str) -> bool:
        ensure_mutable(entity)

        with self._lock:
            return self._collection(entity).pop(record_id, None) is not None

    def tasks_by_assignee(self, user_id: str) -> list[TaskRecord]:
        return [task for task in self.list_all(Entity.TASKS) if task.assigned_to == user_id]

    def messages_between(self, first_user_id: str, second_user_id: str) -> list[MessageRecord]:
        participants = {(first_user_id, second_user_id), (second_user_id, first_user_id)}
        conversation = [
            message
            for message in self.list_all(Entity.MESSAGES)
            if (message.sender_id, message.receiver_id) in participants
        ]
        return sorted(conversation, key=lambda message: message.timestamp)

    def replace_all(self, dataset: Dataset) -> dict[str, int]:
        replacement = {
            entity: {record.id: record.model_copy() for record in dataset.records(entity)}
            for entity in Entity
        }

        with self._lock:
            self._collections = replacement

        return dataset.counts()

    def _ensure_email_available(self, user: UserRecord) -> None:
        for existing in self._collection(Entity.USERS).values():
            if existing.email == user.email and existing.id != user.id:
                raise DuplicateRecordError(f'A user with email {user.email} already exists.')
