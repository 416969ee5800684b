__version__ = "0.1.0"

from .exceptions import FormDataError, FormFinishedError
from .formdata import (
    Field,
    FieldBuilder,
    FormData,
    encode_form,
    generate_boundary,
    quote_string,
)

__all__ = (
    "Field",
    "FieldBuilder",
    "FormData",
    "FormDataError",
    "FormFinishedError",
    "encode_form",
    "generate_boundary",
    "quote_string",
)
