"""Centralized error handling for the RPC client."""

from enum import Enum
from typing import Any, Callable, Dict

from deltachat_rpc.utils.logging import get_logger

_logger = None


def _get_logger():
    """Get logger with lazy initialisation."""
    global _logger
    if _logger is None:
        _logger = get_logger(__name__)
    return _logger


## Error Categories


class ErrorCategory(Enum):
    """Categories of errors for better handling."""

    TRANSPORT = "transport"
    PROTOCOL = "protocol"
    SERVER = "server"
    PRECONDITION = "precondition"
    CANCELLATION = "cancellation"
    CONFIGURATION = "configuration"
    FILE_SYSTEM = "file_system"
    UNKNOWN = "unknown"


## Custom Exceptions


class DeltaChatError(Exception):
    """Base exception for all client errors."""

    category = ErrorCategory.UNKNOWN
    user_message = "An error occurred"

    def __init__(
        self, message: str | None = None, details: Dict[str, Any] | None = None
    ):
        """Initialise DeltaChatError with optional message and details."""
        self.message = message or self.user_message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert error details to a dictionary."""
        return {
            "error_type": self.__class__.__name__,
            "category": self.category.value,
            "message": self.message,
            "details": self.details,
        }


## Transport Errors


class TransportError(DeltaChatError):
    """Base exception for failures of the server process or its stdio."""

    category = ErrorCategory.TRANSPORT
    user_message = "The RPC transport failed"


class ServerNotFoundError(TransportError):
    """Exception when the RPC server binary cannot be executed."""

    user_message = "RPC server binary not found"


class TransportNotStartedError(TransportError):
    """Exception for calls on a transport that was never opened."""

    user_message = "transport is not started"


## Protocol Errors


class ProtocolError(DeltaChatError):
    """Exception for malformed JSON-RPC traffic."""

    category = ErrorCategory.PROTOCOL
    user_message = "Malformed JSON-RPC message"


class ResultDecodeError(ProtocolError):
    """Exception when a result does not match the expected shape."""

    user_message = "Unexpected result shape"


## Server Errors


class RpcError(DeltaChatError):
    """Error object returned by the core server for a call."""

    category = ErrorCategory.SERVER
    user_message = "The RPC server returned an error"

    def __init__(self, code: int = 0, message: str | None = None, data: Any = None):
        self.code = code
        self.data = data
        super().__init__(message, details={"code": code, "data": data})


## Precondition Errors


class PreconditionError(DeltaChatError):
    """Base exception for calls made in the wrong state."""

    category = ErrorCategory.PRECONDITION
    user_message = "Operation not allowed in the current state"


class TransportStartedError(PreconditionError):
    """Exception when opening a transport that is already open."""

    user_message = "transport is already started"


class BotRunningError(PreconditionError):
    """Exception when running a bot that is already running."""

    user_message = "bot is already running"


class FactoryNotReadyError(PreconditionError):
    """Exception when using an account factory before tear_up()."""

    user_message = "tear_up() required"


class OptionUnwrapError(PreconditionError):
    """Exception when unwrapping an empty Option."""

    user_message = "called unwrap() on a None option"


## Cancellation Errors


class RpcCancelledError(DeltaChatError):
    """Base exception for calls aborted before a response arrived."""

    category = ErrorCategory.CANCELLATION
    user_message = "cancelled"


class TransportClosedError(RpcCancelledError):
    """Exception for calls pending or issued after the transport was closed."""

    user_message = "cancelled: transport closed"


class RpcTimeoutError(RpcCancelledError):
    """Exception when a call did not complete within its timeout."""

    user_message = "The call timed out"


## Configuration Errors


class ConfigurationError(DeltaChatError):
    """Base exception for configuration-related errors."""

    category = ErrorCategory.CONFIGURATION
    user_message = "A configuration error occurred"


class InvalidConfigError(ConfigurationError):
    """Exception for invalid configuration settings."""

    user_message = "Invalid configuration settings"


## File System Errors


class FileSystemError(DeltaChatError):
    """Base exception for file system-related errors."""

    category = ErrorCategory.FILE_SYSTEM
    user_message = "A file system error occurred"


## Error Handler

# Exit status of command line tools by error family; any other error exits with 1.
EXIT_CODES = {
    ErrorCategory.PRECONDITION: 2,
    ErrorCategory.CONFIGURATION: 2,
}


class ErrorHandler:
    """Reports errors that end a command line entry point."""

    @staticmethod
    def handle(
        error: Exception, context: str = "", log_traceback: bool = False
    ) -> Dict[str, Any]:
        """Log the error with its details and return it as a dictionary."""
        exc_info = error if log_traceback else None

        if isinstance(error, DeltaChatError):
            _get_logger().error(
                f"{context}: {error.message}",
                extra={"context": error.details},
                exc_info=exc_info,
            )
            return error.to_dict()

        _get_logger().error(f"{context}: {str(error)}", exc_info=exc_info)
        return {
            "error_type": "UnknownError",
            "category": ErrorCategory.UNKNOWN.value,
            "message": str(error),
            "details": {"context": context},
        }

    @staticmethod
    def exit_code(error: Exception) -> int:
        """Process exit status for an error that ended a command."""
        if isinstance(error, DeltaChatError):
            return EXIT_CODES.get(error.category, 1)
        return 1


## Utility Functions


async def ignore_errors(func: Callable, *args, context: str = "", default=None):
    """Await func, logging and swallowing DeltaChatError."""
    try:
        return await func(*args)

    except DeltaChatError as e:
        _get_logger().debug(f"{context}: ignoring error: {e.message}")
        return default


def format_error_message(error: Exception) -> str:
    """Format an error message for display."""
    if isinstance(error, DeltaChatError):
        return error.message
    else:
        return "An unexpected error occurred - check logs for details."
