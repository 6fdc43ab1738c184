"""Error kinds raised by the request handlers.

Each error carries the HTTP status the dispatcher should answer with; the
dispatcher is the only place that turns them into responses.
"""

from __future__ import annotations

from typing import Optional


class RelayError(Exception):
    kind = "internal"
    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ConfigurationError(RelayError):
    kind = "configuration"


class InvalidRequestError(RelayError):
    kind = "request"


class MethodNotAllowedError(RelayError):
    kind = "method"
    status_code = 405

    def __init__(self, message: str = "Method not allowed") -> None:
        super().__init__(message)


class UpstreamError(RelayError):
    kind = "upstream"

    def __init__(self, message: str, upstream_status: Optional[int] = None) -> None:
        super().__init__(message)
        self.upstream_status = upstream_status


class TaskRecordMissingError(RelayError):
    kind = "consistency"

    def __init__(self, task_id: str) -> None:
        super().__init__(f"Could not find storage destination key for task {task_id}.")
        self.task_id = task_id
