"""Plain records shared by every store, the gateway and the seeding routines.

Attributes are snake_case in Python. The serialized form (documents, GraphQL
payloads and migration bodies) uses the camelCase keys of the stored columns.
"""

import uuid
from collections import Counter
from datetime import datetime, timezone
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator, model_validator
from pydantic.alias_generators import to_camel

from taskboard.errors import InvalidRecordError

UserRole = Literal['admin', 'student']
TaskStatus = Literal['pending', 'in-progress', 'completed']


class Entity(str, Enum):
    USERS = 'users'
    TASKS = 'tasks'
    MESSAGES = 'messages'

    @property
    def label(self) -> str:
        return self.value[:-1].capitalize()


def new_id() -> str:
    return uuid.uuid4().hex


def format_timestamp(moment: datetime) -> str:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).isoformat(timespec='milliseconds').replace('+00:00', 'Z')


def utc_timestamp() -> str:
    return format_timestamp(datetime.now(timezone.utc))


_DATETIME = TypeAdapter(datetime)


def normalize_timestamp(value: str) -> str:
    """Rewrite any ISO-8601 moment in the stored `YYYY-MM-DDTHH:MM:SS.mmmZ` form."""
    try:
        moment = _DATETIME.validate_python(value)
    except ValidationError as exc:
        raise ValueError(f'{value!r} is not an ISO-8601 timestamp') from exc
    return format_timestamp(moment)


class Record(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra='ignore')

    id: str = Field(min_length=1)

    def to_document(self) -> dict:
        return self.model_dump(by_alias=True)


class UserRecord(Record):
    name: str
    email: str
    password: str
    role: UserRole
    student_id: str | None = None

    @field_validator('email')
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()


class TaskRecord(Record):
    title: str
    description: str
    status: TaskStatus = 'pending'
    assigned_to: str
    created_by: str
    created_at: str = Field(default_factory=utc_timestamp)

    @field_validator('created_at')
    @classmethod
    def normalize_created_at(cls, value: str) -> str:
        return normalize_timestamp(value)


class MessageRecord(Record):
    sender_id: str
    receiver_id: str
    content: str
    timestamp: str = Field(default_factory=utc_timestamp)

    @field_validator('timestamp')
    @classmethod
    def normalize_sent_at(cls, value: str) -> str:
        return normalize_timestamp(value)


RECORD_TYPES: dict[Entity, type[Record]] = {
    Entity.USERS: UserRecord,
    Entity.TASKS: TaskRecord,
    Entity.MESSAGES: MessageRecord,
}


def describe_validation_error(exc: ValidationError) -> str:
    error = exc.errors()[0]
    location = '.'.join(str(part) for part in error['loc'])
    if location:
        return f'Invalid {location}: {error["msg"]}'
    return error['msg']


def build_record(entity: Entity, data: dict) -> Record:
    try:
        return RECORD_TYPES[entity].model_validate(data)
    except ValidationError as exc:
        raise InvalidRecordError(describe_validation_error(exc)) from exc


def merge_record(entity: Entity, record: Record, fields: dict) -> Record:
    """Overlay ``fields`` on ``record``; fields that are not supplied keep their stored value."""
    unknown = sorted(set(fields) - set(RECORD_TYPES[entity].model_fields))
    if unknown:
        raise InvalidRecordError(f'Unknown {entity.label.lower()} fields: {", ".join(unknown)}')
    if 'id' in fields and fields['id'] != record.id:
        raise InvalidRecordError(f'{entity.label} ids cannot be changed.')

    return build_record(entity, {**record.model_dump(), **fields})


def _find_duplicates(values: list[str]) -> list[str]:
    return sorted(value for value, count in Counter(values).items() if count > 1)


class Dataset(BaseModel):
    """A complete replacement for a store's contents."""

    users: list[UserRecord] = Field(default_factory=list)
    tasks: list[TaskRecord] = Field(default_factory=list)
    messages: list[MessageRecord] = Field(default_factory=list)

    @field_validator('users', 'tasks', 'messages', mode='before')
    @classmethod
    def default_missing_lists(cls, value):
        return [] if value is None else value

    @model_validator(mode='after')
    def check_unique_keys(self) -> 'Dataset':
        for entity in Entity:
            duplicates = _find_duplicates([record.id for record in self.records(entity)])
            if duplicates:
                raise ValueError(f'Duplicate {entity.value} ids: {", ".join(duplicates)}')

        duplicates = _find_duplicates([user.email for user in self.users])
        if duplicates:
            raise ValueError(f'Duplicate user emails: {", ".join(duplicates)}')

        return self

    def records(self, entity: Entity) -> list[Record]:
        return getattr(self, entity.value)

    def counts(self) -> dict[str, int]:
        return {entity.value: len(self.records(entity)) for entity in Entity}


def parse_dataset(data: dict) -> Dataset:
    try:
        return Dataset.model_validate(data)
    except ValidationError as exc:
        raise InvalidRecordError(describe_validation_error(exc)) from exc
