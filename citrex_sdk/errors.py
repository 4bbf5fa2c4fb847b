"""Exception hierarchy for the Citrex SDK.

This module defines the public exception hierarchy for the entire SDK. All exceptions
raised by this library inherit from BaseError.

Public client operations do not raise these for API, transport or validation
failures; they return a ``Result`` instead. The exceptions are raised by the
executors and helpers and translated at the operation boundary.

Exception Hierarchy
-------------------
BaseError
├── ExchangeError - API server or contract rejected the request
│   ├── BadHttpStatus (and 4xx/5xx subclasses)
│   └── ContractRevertError
├── TransportError - Network/protocol-level errors during transmission
│   ├── HttpConnectionError
│   ├── TransportTimeoutError
│   ├── TransactionWaitError
│   ├── DeserializationError
│   └── SerializationError
└── ValidationError - Client-side input validation failures
"""


class BaseError(Exception):
    """Base exception for all Citrex SDK errors.

    This exception should not be raised directly. Use one of the specific subclasses
    instead (ExchangeError, TransportError, ValidationError).
    """

    pass


# ============================================================================
# EXCHANGE ERROR
# ============================================================================


class ExchangeError(BaseError):
    """Exception raised when the exchange rejects a request.

    ExchangeError indicates that:
    - The network connection succeeded
    - The request was properly formatted and transmitted
    - The API server or the vault contract processed it and refused it
    """

    pass


class BadHttpStatus(ExchangeError):
    """Raised when response status from exchange is not 2XX."""

    status_code: int
    message: str

    def __init__(self, status_code: int, message: str):
        """Initialize a BadHttpStatus error.

        Args:
            status_code: The HTTP status code returned by the server.
            message: Description of the HTTP error.

        """
        self.status_code = status_code
        self.message = message
        super().__init__(f"[{status_code}] {message}")


## 5xx status errors


class InternalServerError(BadHttpStatus):
    """Raised when the server returns a 500 Internal Server Error."""

    pass


class BadGateway(BadHttpStatus):
    """Raised when the server returns a 502 Bad Gateway error."""

    pass


class ServiceUnavailable(BadHttpStatus):
    """Raised when the server returns a 503 Service Unavailable error."""

    pass


## 4xx status errors


class BadRequest(BadHttpStatus):
    """Raised when the server returns a 400 Bad Request error."""

    pass


class Unauthorized(BadHttpStatus):
    """Raised when the server returns a 401 Unauthorized error."""

    pass


class NotFound(BadHttpStatus):
    """Raised when the server returns a 404 Not Found error."""

    pass


class RateLimited(BadHttpStatus):
    """Raised when the server returns a 429 Rate Limited error."""

    pass


class ContractRevertError(ExchangeError):
    """Raised when a simulated or submitted contract call reverts."""

    def __init__(self, message: str, error_name: str | None = None):
        """Initialize a ContractRevertError.

        Args:
            message: Human readable revert reason.
            error_name: Name of the decoded custom Solidity error, if any.

        """
        self.message = message
        self.error_name = error_name
        if error_name:
            super().__init__(f"{error_name}: {message}")
        else:
            super().__init__(message)


# ============================================================================
# TRANSPORT ERROR
# ============================================================================


class TransportError(BaseError):
    """Exception raised for errors in the process of transporting data to/from the API server.

    This covers the local networking stack before data is sent, transmission
    over the network, and receiving and decoding data. It also covers the JSON-RPC
    node used for on-chain deposits.

    TransportError indicates that:
    - Valid application-level data was not successfully exchanged
    - The error could be transient and may succeed on retry
    """

    pass


class HttpConnectionError(TransportError):
    """Raised when a connection cannot be established or is lost."""

    def __init__(self, message: str, url: str | None = None):
        """Initialize an HttpConnectionError.

        Args:
            message: Description of the connection error.
            url: The URL that failed to connect, if available.

        """
        self.message = message
        self.url = url
        if url:
            super().__init__(f"{message} (url: {url})")
        else:
            super().__init__(message)


class TransportTimeoutError(TransportError):
    """Raised when a request or connection times out."""

    def __init__(self, message: str, timeout_seconds: float | None = None):
        """Initialize a TransportTimeoutError.

        Args:
            message: Description of the timeout error.
            timeout_seconds: The timeout duration in seconds, if available.

        """
        self.message = message
        self.timeout_seconds = timeout_seconds
        if timeout_seconds:
            super().__init__(f"{message} (timeout: {timeout_seconds}s)")
        else:
            super().__init__(message)


class TransactionWaitError(TransportError):
    """Raised when waiting for a transaction receipt is abandoned."""

    def __init__(self, message: str, transaction_hash: str):
        """Initialize a TransactionWaitError.

        Args:
            message: Why the wait stopped (deadline reached or cancelled).
            transaction_hash: The transaction that was being awaited.

        """
        self.message = message
        self.transaction_hash = transaction_hash
        super().__init__(f"{message} (transaction: {transaction_hash})")


class DeserializationError(TransportError):
    """Raised when response data cannot be deserialized/decoded."""

    def __init__(self, message: str):
        """Initialize a DeserializationError.

        Args:
            message: Description of the deserialization error.

        """
        self.message = message
        super().__init__(message)


class SerializationError(TransportError):
    """Raised when request data cannot be serialized/encoded."""

    def __init__(self, message: str):
        """Initialize a SerializationError.

        Args:
            message: Description of the serialization error.

        """
        self.message = message
        super().__init__(message)


# ============================================================================
# VALIDATION ERROR
# ============================================================================


class ValidationError(BaseError):
    """Exception raised for client-side input validation failures.

    ValidationError indicates that:
    - No network request was attempted
    - The error is due to invalid input from the caller
    - The error can be fixed by correcting the input parameters
    """

    pass
