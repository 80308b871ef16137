"""GraphQL schema, resolvers and request execution.

The gateway never decides which backend is in use: resolvers read the store
from the execution context and speak only the ``TaskStore`` contract.
"""

import logging

from graphql import (
    GraphQLError,
    OperationType,
    build_schema,
    execute_sync,
    get_operation_ast,
    parse,
    validate,
)
from pydantic.alias_generators import to_snake

from taskboard.auth.passwords import hash_password
from taskboard.errors import TaskboardError
from taskboard.records import Entity, Record, build_record, new_id
from taskboard.stores.base import TaskStore

logger = logging.getLogger(__name__)

SCHEMA_SDL = """
type User {
  id: ID!
  name: String!
  email: String!
  role: String!
  studentId: String
}

type Task {
  id: ID!
  title: String!
  description: String!
  status: String!
  assignedTo: String!
  createdBy: String!
  createdAt: String!
}

type Message {
  id: ID!
  senderId: String!
  receiverId: String!
  content: String!
  timestamp: String!
}

type Query {
  users: [User!]!
  user(id: ID!): User
  tasks: [Task!]!
  task(id: ID!): Task
  tasksByUser(userId: ID!): [Task!]!
  messages: [Message!]!
  messagesBetween(user1Id: ID!, user2Id: ID!): [Message!]!
}

type Mutation {
  createUser(name: String!, email: String!, password: String!, role: String!, studentId: String): User!
  updateUser(id: ID!, name: String, email: String, password: String, role: String, studentId: String): User!
  deleteUser(id: ID!): Boolean!

  createTask(title: String!, description: String!, assignedTo: String!, createdBy: String!): Task!
  updateTask(id: ID!, title: String, description: String, status: String, assignedTo: String): Task!
  deleteTask(id: ID!): Boolean!

  sendMessage(senderId: String!, receiverId: String!, content: String!): Message!
}
"""

# Arguments that may be explicitly set to null to clear the stored value.
NULLABLE_UPDATE_ARGUMENTS = {'studentId'}


def _store(info) -> TaskStore:
    return info.context['store']


def _serialize(record: Record | None) -> dict | None:
    return record.to_document() if record is not None else None


def _update_fields(arguments: dict) -> dict:
    return {
        to_snake(name): value
        for name, value in arguments.items()
        if name != 'id' and (value is not None or name in NULLABLE_UPDATE_ARGUMENTS)
    }


def resolve_users(_root, info):
    return [_serialize(user) for user in _store(info).list_all(Entity.USERS)]


def resolve_user(_root, info, id):
    return _serialize(_store(info).get_by_id(Entity.USERS, id))


def resolve_tasks(_root, info):
    return [_serialize(task) for task in _store(info).list_all(Entity.TASKS)]


def resolve_task(_root, info, id):
    return _serialize(_store(info).get_by_id(Entity.TASKS, id))


def resolve_tasks_by_user(_root, info, userId):
    return [_serialize(task) for task in _store(info).tasks_by_assignee(userId)]


def resolve_messages(_root, info):
    return [_serialize(message) for message in _store(info).list_all(Entity.MESSAGES)]


def resolve_messages_between(_root, info, user1Id, user2Id):
    return [_serialize(message) for message in _store(info).messages_between(user1Id, user2Id)]


def resolve_create_user(_root, info, **arguments):
    user = build_record(Entity.USERS, {
        'id': new_id(),
        'name': arguments['name'],
        'email': arguments['email'],
        'password': arguments['password'],
        'role': arguments['role'],
        'student_id': arguments.get('studentId'),
    })
    user = user.model_copy(update={'password': hash_password(user.password)})
    return _serialize(_store(info).create(Entity.USERS, user))


def resolve_update_user(_root, info, id, **arguments):
    fields = _update_fields(arguments)
    if 'password' in fields:
        fields['password'] = hash_password(fields['password'])
    return _serialize(_store(info).update(Entity.USERS, id, fields))


def resolve_delete_user(_root, info, id):
    return _store(info).delete(Entity.USERS, id)


def resolve_create_task(_root, info, **arguments):
    task = build_record(Entity.TASKS, {
        'id': new_id(),
        'title': arguments['title'],
        'description': arguments['description'],
        'status': 'pending',
        'assigned_to': arguments['assignedTo'],
        'created_by': arguments['createdBy'],
    })
    return _serialize(_store(info).create(Entity.TASKS, task))


def resolve_update_task(_root, info, id, **arguments):
    return _serialize(_store(info).update(Entity.TASKS, id, _update_fields(arguments)))


def resolve_delete_task(_root, info, id):
    return _store(info).delete(Entity.TASKS, id)


def resolve_send_message(_root, info, **arguments):
    message = build_record(Entity.MESSAGES, {
        'id': new_id(),
        'sender_id': arguments['senderId'],
        'receiver_id': arguments['receiverId'],
        'content': arguments['content'],
    })
    return _serialize(_store(info).create(Entity.MESSAGES, message))


QUERY_RESOLVERS = {
    'users': resolve_users,
    'user': resolve_user,
    'tasks': resolve_tasks,
    'task': resolve_task,
    'tasksByUser': resolve_tasks_by_user,
    'messages': resolve_messages,
    'messagesBetween': resolve_messages_between,
}

MUTATION_RESOLVERS = {
    'createUser': resolve_create_user,
    'updateUser': resolve_update_user,
    'deleteUser': resolve_delete_user,
    'createTask': resolve_create_task,
    'updateTask': resolve_update_task,
    'deleteTask': resolve_delete_task,
    'sendMessage': resolve_send_message,
}


def build_gateway_schema():
    schema = build_schema(SCHEMA_SDL)
    for name, resolver in QUERY_RESOLVERS.items():
        schema.query_type.fields[name].resolve = resolver
    for name, resolver in MUTATION_RESOLVERS.items():
        schema.mutation_type.fields[name].resolve = resolver
    return schema


schema = build_gateway_schema()


def _error_payload(message: str) -> dict:
    return {'errors': [{'message': message}]}


def execute_request(
    store: TaskStore,
    query: str | None,
    variables: dict | None = None,
    operation_name: str | None = None,
    *,
    allow_mutations: bool = True,
) -> tuple[int, dict]:
    """Run one GraphQL request and return ``(status_code, payload)``.

    The payload holds either ``data`` or ``errors``, never both: a failing
    field fails the whole request.
    """
    if not query:
        return 400, _error_payload('Must provide query string.')

    try:
        document = parse(query)
    except GraphQLError as error:
        return 400, {'errors': [error.formatted]}

    validation_errors = validate(schema, document)
    if validation_errors:
        return 400, {'errors': [error.formatted for error in validation_errors]}

    operation = get_operation_ast(document, operation_name)
    if operation is None:
        return 400, _error_payload('Could not determine which operation to run.')
    if operation.operation == OperationType.MUTATION and not allow_mutations:
        return 405, _error_payload('Mutations can only be sent with POST requests.')

    result = execute_sync(
        schema,
        document,
        context_value={'store': store},
        variable_values=variables,
        operation_name=operation_name,
    )

    if not result.errors:
        return 200, {'data': result.data}

    unexpected = [
        error
        for error in result.errors
        if error.original_error is not None and not isinstance(error.original_error, TaskboardError)
    ]
    if unexpected:
        for error in unexpected:
            logger.error('GraphQL operation failed at %s', error.path, exc_info=error.original_error)
        return 500, _error_payload('Internal server error')

    if all(error.original_error is None for error in result.errors):
        # Variable coercion problems are request errors, not resolver failures.
        return 400, {'errors': [error.formatted for error in result.errors]}

    return 200, {'errors': [error.formatted for error in result.errors]}
