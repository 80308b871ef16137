"""Domain errors raised by the stores and translated at the HTTP boundary."""


class TaskboardError(Exception):
    """Base class for errors callers are expected to handle."""


class RecordNotFoundError(TaskboardError, LookupError):
    def __init__(self, label: str, record_id: str):
        super().__init__(f'{label} not found')
        self.label = label
        self.record_id = record_id


class DuplicateRecordError(TaskboardError):
    pass


class InvalidRecordError(TaskboardError, ValueError):
    pass


class UnsupportedOperationError(TaskboardError):
    pass


class BackendConfigurationError(TaskboardError):
    pass
