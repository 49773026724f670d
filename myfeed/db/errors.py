"""Persistence error taxonomy."""


class PersistenceError(Exception):
    """A database operation failed."""

    def __init__(self, action: str, table: str, cause: object = None) -> None:
        self.action = action
        self.table = table
        self.cause = cause
        message = f"Error {action} {table}"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)


class DuplicateLinkError(PersistenceError):
    """An item with the same link was already ingested."""

    def __init__(self, link: str) -> None:
        self.link = link
        super().__init__("inserting row into", "items", f"link {link} already exists")
