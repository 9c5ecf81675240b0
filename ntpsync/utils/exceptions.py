class NtpSyncException(Exception):
    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self):
        return f"{self.__class__.__name__}: {self.message}"


class TransportError(NtpSyncException):
    pass


class ResourceBusyError(TransportError):
    """The host ran out of resources for send()/poll(); try again later."""
    pass


class QueryTimeoutError(TransportError):
    pass


class NetworkError(TransportError):
    pass


class ResolutionError(NtpSyncException):
    pass


class ProtocolError(NtpSyncException):
    pass


class InvalidResponseError(ProtocolError):
    pass


class CanceledError(NtpSyncException):
    def __init__(self, message: str = "Operation canceled."):
        super().__init__(message)


class SyncError(NtpSyncException):
    pass


class NoAddressError(SyncError):
    pass


class NoServerError(SyncError):
    pass


class AlreadyRunningError(SyncError):
    pass


class ClockError(NtpSyncException):
    pass


class ConfigError(NtpSyncException):
    pass


class TimezoneError(NtpSyncException):
    pass


class QueueStopped(NtpSyncException):
    def __init__(self, message: str = "Queue is stopping."):
        super().__init__(message)
