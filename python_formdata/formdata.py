from __future__ import annotations

import logging
import os
import struct
from collections.abc import Mapping
from io import BytesIO
from typing import TYPE_CHECKING, Generic, TypeVar

from .exceptions import FormFinishedError

if TYPE_CHECKING:  # pragma: no cover
    import random
    from collections.abc import Iterable
    from typing import Protocol, TypedDict, Union

    class SupportsRead(Protocol):
        def read(self, __n: int = ...) -> bytes: ...

    class SupportsWrite(Protocol):
        def write(self, __b: bytes) -> int | None: ...

    class FormDataConfig(TypedDict, total=False):
        COPY_BUFFER_SIZE: int

    FieldValue = Union[str, bytes]
    FormFields = Union[Mapping[str, FieldValue], Iterable["Field"]]


W = TypeVar("W", bound="SupportsWrite")

CRLF = b"\r\n"

# Default boundaries are this prefix followed by up to 24 hex digits.
BOUNDARY_PREFIX = "-" * 26

CONTENT_TYPE_PREFIX = "multipart/form-data; boundary="


def generate_boundary(rng: random.Random | None = None) -> str:
    """Generate a random string that can be used as a multipart boundary.

    Twelve random bytes are read as three little-endian 32-bit integers, and
    each one is rendered as lowercase hex without zero padding, so the hex
    tail is between 3 and 24 characters long.

    Args:
        rng: An optional :class:`random.Random` to draw the bytes from. By
            default the operating system's CSPRNG (:func:`os.urandom`) is used.
    """
    if rng is None:
        raw = os.urandom(12)
    else:
        raw = rng.getrandbits(96).to_bytes(12, "little")

    a, b, c = struct.unpack("<3I", raw)
    return f"{BOUNDARY_PREFIX}{a:x}{b:x}{c:x}"


def _to_bytes(value: str | bytes) -> bytes:
    if isinstance(value, str):
        return value.encode("utf-8")
    return value


def quote_string(value: str | bytes) -> bytes:
    """Escape a value for use inside a quoted ``Content-Disposition``
    parameter, such as ``name="..."`` or ``filename="..."``.

    Only the double quote, the backslash and the carriage return are escaped,
    each by prefixing it with a backslash. Line feeds are passed through
    untouched, so a bare LF in a name will produce a malformed header.

    Text is encoded as UTF-8 first; bytes are escaped as-is.
    """
    value = _to_bytes(value)
    return value.replace(b"\\", b"\\\\").replace(b'"', b'\\"').replace(b"\r", b"\\\r")


class Field:
    """A single part of a multipart/form-data body.

    A field is a name, an optional file name, an optional media type and a
    readable binary stream holding the payload. The stream is drained to EOF
    when the field is appended to a :class:`FormData`.

    Args:
        name: The form field name.
        data: A binary stream with a ``read()`` method.
        file_name: The suggested file name, for file uploads.
        content_type: The media type of the payload, e.g. ``image/png``. It is
            written verbatim and must not contain CR, LF or NUL.
    """

    def __init__(
        self,
        name: str | bytes,
        data: SupportsRead,
        file_name: str | bytes | None = None,
        content_type: str | bytes | None = None,
    ) -> None:
        self._name = name
        self._data = data
        self._file_name = file_name
        self._content_type = content_type

    @classmethod
    def from_value(cls, name: str | bytes, value: str | bytes) -> Field:
        """Create a plain text field from an in-memory value. Text values are
        encoded as UTF-8.
        """
        return cls(name, BytesIO(_to_bytes(value)))

    @property
    def field_name(self) -> str | bytes:
        return self._name

    @property
    def file_name(self) -> str | bytes | None:
        return self._file_name

    @property
    def content_type(self) -> str | bytes | None:
        return self._content_type

    @property
    def data(self) -> SupportsRead:
        """The payload stream."""
        return self._data

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(field_name={self.field_name!r}, file_name={self.file_name!r}, "
            f"content_type={self.content_type!r})"
        )


class FieldBuilder:
    """Builder for :class:`Field` values.

    ```python
    field = FieldBuilder("avatar").filename("me.png").content_type("image/png").build(fh)
    ```
    """

    def __init__(self, name: str | bytes) -> None:
        self._name = name
        self._file_name: str | bytes | None = None
        self._content_type: str | bytes | None = None

    def filename(self, file_name: str | bytes) -> FieldBuilder:
        self._file_name = file_name
        return self

    def content_type(self, content_type: str | bytes) -> FieldBuilder:
        self._content_type = content_type
        return self

    def build(self, data: SupportsRead) -> Field:
        """Provide the payload stream and finish the field."""
        return Field(self._name, data, file_name=self._file_name, content_type=self._content_type)


class FormData(Generic[W]):
    """A streaming multipart/form-data writer.

    Parts are written to ``sink`` as soon as they are appended; nothing is
    buffered besides the chunk being copied. Call :meth:`end` once all parts
    are appended to write the closing delimiter and get the sink back.

    ```python
    form = FormData(BytesIO())
    form.append_text("greeting", "hello")
    with open("photo.png", "rb") as fh:
        form.append_file("photo", "image/png", fh)
    body = form.end().getvalue()
    headers = {"Content-Type": form.content_type}
    ```

    Errors raised by the sink or by a payload stream are propagated unchanged.
    Once that happens the body is truncated and the writer should be
    discarded.

    Args:
        sink: A binary stream with a ``write()`` method.
        boundary: The multipart boundary. It is neither validated nor checked
            against the payloads. If not given, one is generated with
            :func:`generate_boundary`.
        config: A dictionary of configuration values; see ``DEFAULT_CONFIG``.
    """

    #: This is the default configuration for the writer.
    DEFAULT_CONFIG: FormDataConfig = {
        "COPY_BUFFER_SIZE": 64 * 1024,
    }

    def __init__(self, sink: W, boundary: str | None = None, config: FormDataConfig = {}) -> None:
        self.logger = logging.getLogger(__name__)

        if boundary is None:
            boundary = generate_boundary()

        self._sink = sink
        self._boundary = boundary
        self._finished = False

        self.config: FormDataConfig = self.DEFAULT_CONFIG.copy()
        self.config.update(config)

    @classmethod
    def with_boundary(cls, sink: W, boundary: str) -> FormData[W]:
        """Create a writer with a precomputed multipart boundary."""
        return cls(sink, boundary)

    @classmethod
    def new(cls, sink: W, rng: random.Random | None = None) -> FormData[W]:
        """Create a writer with a randomly generated boundary."""
        return cls(sink, generate_boundary(rng))

    @property
    def boundary(self) -> str:
        """The multipart boundary used by this writer."""
        return self._boundary

    @property
    def content_type(self) -> str:
        """A value for the request's ``Content-Type`` header. The boundary is
        not quoted, so custom boundaries must be valid tokens.
        """
        return CONTENT_TYPE_PREFIX + self._boundary

    def _write(self, data: bytes) -> None:
        # Raw sinks may accept fewer bytes than given; keep writing the rest.
        view = memoryview(data)
        while view:
            written = self._sink.write(view)
            if written is None:
                break
            if written == 0:
                raise OSError("Sink accepted no bytes of a %d-byte write" % len(view))
            if written != len(view):
                self.logger.debug("Short write to sink (%d != %d)", written, len(view))
            view = view[written:]

    def _check_not_finished(self) -> None:
        if self._finished:
            raise FormFinishedError("Cannot write to a form that has already ended")

    def append(self, field: Field) -> None:
        """Append a field to the multipart body.

        This writes the part's delimiter and headers, copies the field's
        payload stream to the sink until EOF, and terminates the part with a
        CRLF.
        """
        self._check_not_finished()
        self.logger.debug("Appending field %r (file name: %r)", field.field_name, field.file_name)

        self._write(b"--" + self._boundary.encode("ascii") + CRLF)

        header = b'Content-Disposition: form-data; name="' + quote_string(field.field_name) + b'"'
        if field.file_name is not None:
            header += b'; filename="' + quote_string(field.file_name) + b'"'
        if field.content_type is not None:
            header += CRLF + b"Content-Type: " + _to_bytes(field.content_type)
        self._write(header + CRLF + CRLF)

        chunk_size = self.config["COPY_BUFFER_SIZE"]
        while True:
            chunk = field.data.read(chunk_size)
            if not chunk:
                break
            self._write(chunk)
        self._write(CRLF)

    def append_text(self, name: str | bytes, data: str | bytes) -> None:
        """Append a text field to the multipart body."""
        self.append(Field.from_value(name, data))

    def append_file(
        self,
        name: str | bytes,
        mime_type: str | bytes,
        data: SupportsRead,
        filename: str | bytes | None = None,
    ) -> None:
        """Append a file field to the multipart body.

        Provide a field name, a mime type and the file contents. The file name
        defaults to the field name; pass ``filename`` to send a different one.
        The stream is read to EOF but not closed.
        """
        if filename is None:
            filename = name
        field = FieldBuilder(name).filename(filename).content_type(mime_type).build(data)
        self.append(field)

    def end(self) -> W:
        """Finish the multipart body. This writes the closing delimiter and
        returns the sink.

        With a :class:`io.BytesIO` sink, the body can then be read with:

        ```python
        body = form.end().getvalue()
        ```
        """
        self._check_not_finished()
        self._write(b"--" + self._boundary.encode("ascii") + b"--" + CRLF)
        self._finished = True
        self.logger.debug("Finished multipart body with boundary %r", self._boundary)
        return self._sink

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(sink={self._sink!r}, boundary={self._boundary!r})"


def encode_form(fields: FormFields, boundary: str | None = None) -> tuple[bytes, str]:
    """Encode a whole form in memory.

    Args:
        fields: Either a mapping of field names to text or bytes values, or an
            iterable of :class:`Field` objects.
        boundary: The multipart boundary. If not given, a random one is used.

    Returns:
        A ``(body, content_type)`` tuple.
    """
    form = FormData(BytesIO(), boundary)

    if isinstance(fields, Mapping):
        for name, value in fields.items():
            form.append_text(name, value)
    else:
        for field in fields:
            form.append(field)

    return form.end().getvalue(), form.content_type
