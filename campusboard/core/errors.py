# Typed push errors. The "type" codes are part of the admin API contract:
# the admin UI switches on them to decide which hint to show.

VAPID_CONFIG_ERROR = "VAPID_CONFIG_ERROR"
DATABASE_TABLE_ERROR = "DATABASE_TABLE_ERROR"
DATABASE_ERROR = "DATABASE_ERROR"
INTERNAL_ERROR = "INTERNAL_ERROR"


class PushError(Exception):
    """An error that affects whether a broadcast went out."""

    error_type = INTERNAL_ERROR
    message = "Internal server error"
    status_code = 500

    def __init__(self, details: str = "", message: str | None = None):
        super().__init__(details or self.message)
        self.details = details
        if message is not None:
            self.message = message

    def to_dict(self) -> dict:
        return {"error": self.message, "details": self.details, "type": self.error_type}


class PushConfigError(PushError):
    error_type = VAPID_CONFIG_ERROR
    message = "Push notifications are not configured"


class PushDatabaseError(PushError):
    error_type = DATABASE_ERROR
    message = "Database error"


class PushTableError(PushDatabaseError):
    error_type = DATABASE_TABLE_ERROR
    message = "Push tables are missing — run the database migrations"
