from typing import Optional, Union


class ColmapFormatError(ValueError):
    """Base class for all errors raised while decoding a COLMAP model."""


class UnknownCameraModelError(ColmapFormatError):
    """Raised for a camera model id or name that is not in the registry."""

    def __init__(self, model: Union[int, str]):
        self.model = model
        kind = "ID" if isinstance(model, int) else "name"
        super().__init__(f"Unknown camera model {kind}: {model!r}")


class ParamCountMismatchError(ColmapFormatError):
    """Raised when a camera carries a different number of params than its model."""

    def __init__(self, model_name: str, expected: int, received: int,
                 line_number: Optional[int] = None):
        self.model_name = model_name
        self.expected = expected
        self.received = received
        self.line_number = line_number
        message = (f"Camera model '{model_name}' expects {expected} parameters, "
                   f"but received {received}.")
        if line_number is not None:
            message = f"line {line_number}: {message}"
        super().__init__(message)


class MalformedRecordError(ColmapFormatError):
    """Raised when a text record has the wrong number of tokens."""

    def __init__(self, message: str, line_number: Optional[int] = None):
        self.line_number = line_number
        if line_number is not None:
            message = f"line {line_number}: {message}"
        super().__init__(message)


class UnexpectedEofError(ColmapFormatError, EOFError):
    """Raised when a binary stream ends in the middle of a record."""


class InvalidEncodingError(ColmapFormatError):
    """Raised when a name or text line is not valid UTF-8."""


class ParseError(ColmapFormatError):
    """Raised when a text token cannot be converted to its numeric type."""

    def __init__(self, token: str, field: str, line_number: Optional[int] = None):
        self.token = token
        self.field = field
        self.line_number = line_number
        location = f"line {line_number}, " if line_number is not None else ""
        super().__init__(f"{location}field '{field}': cannot parse {token!r}")
