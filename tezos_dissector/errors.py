"""
errors.py - Decoding error taxonomy

Every data-dependent failure raised while decoding a message is a
DecodingError. A decode call that raises one aborts the current value;
callers stop rendering the message at that point.

UnresolvedLazyError is not a DecodingError. It signals a
schema that still contains a Lazy node where the interpreter expects a
resolved one, which is a programming error rather than bad input.
"""


class DecodingError(ValueError):
    """Base class for data-dependent decode failures."""

    message = "Decoding error"

    def __init__(self, detail: str = None):
        self.detail = detail
        text = self.message if detail is None else f"{self.message}: {detail}"
        super().__init__(text)


class NotEnoughData(DecodingError):
    message = "Not enough bytes"


class TagSizeNotSupported(DecodingError):
    message = "Tag size not supported"


class TagNotFound(DecodingError):
    message = "Tag not found"


class UnexpectedOptionDiscriminant(DecodingError):
    message = "Unexpected option value"


class BadPathTag(DecodingError):
    message = "Path tag should be 0x00 or 0x0f or 0xf0"


class UnresolvedLazyError(RuntimeError):
    """A Lazy schema node reached the measure/render traversal."""

    def __init__(self, base: str = None):
        where = f" at '{base}'" if base else ""
        super().__init__(f"Lazy encoding must be unwound before decoding{where}")


class SchemaError(ValueError):
    """Malformed schema document."""
