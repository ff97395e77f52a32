from datetime import datetime, timezone


class CourtsideError(Exception):
    """
    Base for every error the core raises on purpose.

    `kind` is the machine-readable tag, `reason` the human-readable message.
    `status_code` is the HTTP status the API layer answers with.
    """

    kind = "error"
    status_code = 500

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason

    def to_dict(self):
        return {
            "error": self.reason,
            "kind": self.kind,
            "statusCode": self.status_code,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }


class NotFound(CourtsideError):
    kind = "not_found"
    status_code = 404


class Forbidden(CourtsideError):
    kind = "forbidden"
    status_code = 403


class Locked(CourtsideError):
    kind = "locked"
    status_code = 423


class Conflict(CourtsideError):
    kind = "conflict"
    status_code = 409


class ValidationError(CourtsideError):
    kind = "validation_error"
    status_code = 400


class MigrationGuardError(CourtsideError):
    kind = "migration_guard"
    status_code = 409
