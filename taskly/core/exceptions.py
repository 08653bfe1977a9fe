class TasklyException(Exception):
    """
    Base exception for errors raised by the task store and sync layer
    """
    def __init__(self, message: str = "Task store error"):
        self.message = message
        super().__init__(self.message)


class ValidationException(TasklyException):
    """
    Raised when input breaks a write-time rule (e.g. duplicate category name).
    Nothing has been written when this is raised.
    """
    def __init__(self, message: str = "Invalid input"):
        super().__init__(message)


class DomainException(TasklyException):
    """
    Raised when an operation is not allowed in the current state
    (e.g. starting a second active time session for a task)
    """
    def __init__(self, message: str = "Operation not allowed"):
        super().__init__(message)


class SyncInProgressException(DomainException):
    """
    Raised when a sync is requested while another one is still running
    """
    def __init__(self, message: str = "Sync is already in progress"):
        super().__init__(message)


class PersistenceException(TasklyException):
    """
    Raised when the underlying store fails to read or write.
    The enclosing transaction has been rolled back.
    """
    def __init__(self, message: str = "Task store is unavailable"):
        super().__init__(message)


class SyncItemException(TasklyException):
    """
    Raised while applying a single outbox record
    """
    def __init__(self, message: str = "Failed to apply sync record"):
        super().__init__(message)
