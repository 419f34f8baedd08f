from __future__ import annotations


class JobEngineError(Exception):
    """Base class for errors raised by the job engine."""


class DuplicateJobError(JobEngineError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Job already registered: {name}")
        self.name = name


class UnknownJobError(JobEngineError, KeyError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown job: {name}")
        self.name = name

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message.
        return str(self.args[0])


class InvalidCadenceError(JobEngineError, ValueError):
    pass


class SchedulerStateError(JobEngineError, RuntimeError):
    pass


class ItemNotFoundError(JobEngineError, LookupError):
    def __init__(self, item_id: object) -> None:
        super().__init__(f"Item not found: {item_id}")
        self.item_id = item_id
