# portable_widgets/errors.py
"""Exception types raised by the widget manager runtime."""


class WidgetManagerError(Exception):
    """Base class for every error raised by portable_widgets."""


class NotFoundError(WidgetManagerError, LookupError):
    """The state provider has no record for a model id."""

    def __init__(self, model_id: str):
        super().__init__(f"Widget model '{model_id}' not found")
        self.model_id = model_id


class UnsupportedOperationError(WidgetManagerError, NotImplementedError):
    """The requested operation is not available in this runtime."""

    def __init__(self, operation: str, detail: str = "is not yet supported"):
        super().__init__(f"{operation} {detail}")
        self.operation = operation


class CallbackError(WidgetManagerError):
    """Wraps an exception raised by a comm message listener."""

    def __init__(self, comm_id: str, error: BaseException):
        super().__init__(f"Comm '{comm_id}' listener raised {error!r}")
        self.comm_id = comm_id
        self.error = error


class CommClosedError(WidgetManagerError):
    """A message was sent on a comm after close() was called."""

    def __init__(self, comm_id: str):
        super().__init__(f"Comm '{comm_id}' is closed")
        self.comm_id = comm_id


class DuplicateRegistrationError(WidgetManagerError):
    """A custom element name was defined twice."""

    def __init__(self, name: str):
        super().__init__(f"Custom element '{name}' has already been defined")
        self.name = name


class DOMError(WidgetManagerError):
    """An invalid operation on the presentation tree."""


class ProtocolVersionError(WidgetManagerError):
    """A comm_open message used an incompatible widget protocol version."""
