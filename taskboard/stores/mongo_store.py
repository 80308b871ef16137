"""MongoDB store backed by pymongo."""

import logging
from typing import Callable

from pymongo import ASCENDING, MongoClient
from pymongo.collection import Collection
from pymongo.errors import DuplicateKeyError
from pymongo.server_api import ServerApi

from taskboard.errors import DuplicateRecordError, RecordNotFoundError
from taskboard.records import (
    RECORD_TYPES,
    Dataset,
    Entity,
    MessageRecord,
    Record,
    TaskRecord,
    UserRecord,
    merge_record,
)
from taskboard.stores.base import TaskStore, ensure_mutable, ensure_record_type

logger = logging.getLogger(__name__)

# Keep Mongo's own _id out of every record handed back to callers.
_PROJECTION = {'_id': 0}

INDEXES = {
    Entity.USERS: [
        ([('id', ASCENDING)], {'unique': True}),
        ([('email', ASCENDING)], {'unique': True}),
    ],
    Entity.TASKS: [
        ([('id', ASCENDING)], {'unique': True}),
        ([('assignedTo', ASCENDING)], {}),
        ([('createdBy', ASCENDING)], {}),
    ],
    Entity.MESSAGES: [
        ([('id', ASCENDING)], {'unique': True}),
        ([('senderId', ASCENDING), ('receiverId', ASCENDING)], {}),
        ([('timestamp', ASCENDING)], {}),
    ],
}


class MongoStore(TaskStore):
    kind = 'mongodb'
    label = 'MongoDB'

    def __init__(
        self,
        uri: str,
        database_name: str = 'task_management_system',
        client_factory: Callable[..., MongoClient] = MongoClient,
    ) -> None:
        self.uri = uri
        self.database_name = database_name
        self._client_factory = client_factory
        self._client: MongoClient | None = None
        self._database = None

    def open(self) -> None:
        if self._client is not None:
            return

        self._client = self._client_factory(
            self.uri,
            server_api=ServerApi('1', strict=True, deprecation_errors=True),
        )
        self._database = self._client[self.database_name]
        logger.info('Using MongoDB database %s', self.database_name)

    def close(self) -> None:
        if self._client is None:
            return

        self._client.close()
        self._client = None
        self._database = None

    def _collection(self, entity: Entity) -> Collection:
        if self._database is None:
            self.open()
        return self._database[entity.value]

    def initialize_schema(self) -> list[str]:
        for entity, indexes in INDEXES.items():
            collection = self._collection(entity)
            for keys, options in indexes:
                collection.create_index(keys, **options)

        logger.info('MongoDB collections initialized')
        return [entity.value for entity in Entity]

    def _to_record(self, entity: Entity, document: dict) -> Record:
        return RECORD_TYPES[entity].model_validate(document)

    def list_all(self, entity: Entity) -> list[Record]:
        return [self._to_record(entity, document) for document in self._collection(entity).find({}, _PROJECTION)]

    def get_by_id(self, entity: Entity, record_id: str) -> Record | None:
        document = self._collection(entity).find_one({'id': record_id}, _PROJECTION)
        return self._to_record(entity, document) if document is not None else None

    def create(self, entity: Entity, record: Record) -> Record:
        ensure_record_type(entity, record)
        collection = self._collection(entity)

        # The unique indexes only exist once initialize_schema has run.
        if collection.find_one({'id': record.id}, _PROJECTION) is not None:
            raise DuplicateRecordError(f'{entity.label} with id {record.id} already exists.')
        if entity is Entity.USERS:
            self._ensure_email_available(record)

        try:
            collection.insert_one(record.to_document())
        except DuplicateKeyError as exc:
            raise DuplicateRecordError(f'{entity.label} conflicts with an existing record.') from exc

        return record

    def update(self, entity: Entity, record_id: str, fields: dict) -> Record:
        ensure_mutable(entity)
        collection = self._collection(entity)

        document = collection.find_one({'id': record_id}, _PROJECTION)
        if document is None:
            raise RecordNotFoundError(entity.label, record_id)

        updated = merge_record(entity, self._to_record(entity, document), fields)
        if entity is Entity.USERS:
            self._ensure_email_available(updated)

        try:
            collection.update_one({'id': record_id}, {'$set': updated.to_document()})
        except DuplicateKeyError as exc:
            raise DuplicateRecordError(f'{entity.label} conflicts with an existing record.') from exc

        return updated

    def delete(self, entity: Entity, record_id: str) -> bool:
        ensure_mutable(entity)
        result = self._collection(entity).delete_one({'id': record_id})
        return result.deleted_count > 0

    def tasks_by_assignee(self, user_id: str) -> list[TaskRecord]:
        documents = self._collection(Entity.TASKS).find({'assignedTo': user_id}, _PROJECTION)
        return [self._to_record(Entity.TASKS, document) for document in documents]

    def messages_between(self, first_user_id: str, second_user_id: str) -> list[MessageRecord]:
        documents = self._collection(Entity.MESSAGES).find(
            {
                '$or': [
                    {'senderId': first_user_id, 'receiverId': second_user_id},
                    {'senderId': second_user_id, 'receiverId': first_user_id},
                ]
            },
            _PROJECTION,
        ).sort('timestamp', ASCENDING)
        return [self._to_record(Entity.MESSAGES, document) for document in documents]

    def replace_all(self, dataset: Dataset) -> dict[str, int]:
        # Not transactional: a driver failure between the wipe and the inserts
        # leaves the collections partially populated.
        for entity in (Entity.MESSAGES, Entity.TASKS, Entity.USERS):
            self._collection(entity).delete_many({})

        for entity in Entity:
            documents = [record.to_document() for record in dataset.records(entity)]
            if documents:
                self._collection(entity).insert_many(documents)

        counts = dataset.counts()
        logger.info('Replaced MongoDB data: %s', counts)
        return counts

    def _ensure_email_available(self, user: UserRecord) -> None:
        conflict = self._collection(Entity.USERS).find_one(
            {'email': user.email, 'id': {'$ne': user.id}},
            _PROJECTION,
        )
        if conflict is not None:
            raise DuplicateRecordError(f'A user with email {user.email} already exists.')
