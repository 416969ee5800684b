import io
import sys

import atheris
from helpers import EnhancedDataProvider

with atheris.instrument_imports():
    from python_formdata.formdata import Field, FormData

BOUNDARY = "--------------------------fuzzboundary"


def TestOneInput(data: bytes) -> None:
    fdp = EnhancedDataProvider(data)
    form = FormData.with_boundary(io.BytesIO(), BOUNDARY)

    parts = 0
    while fdp.remaining_bytes() > 0 and parts < 8:
        field = Field(
            fdp.ConsumeShortBytes(),
            io.BytesIO(fdp.ConsumeShortBytes(1024)),
            file_name=fdp.ConsumeOptionalBytes(),
            content_type=fdp.ConsumeOptionalBytes(),
        )
        form.append(field)
        parts += 1

    body = form.end().getvalue()
    boundary = BOUNDARY.encode("ascii")
    assert body.count(b"--" + boundary + b"\r\n") >= parts
    assert body.endswith(b"--" + boundary + b"--\r\n")


def main():
    atheris.Setup(sys.argv, TestOneInput)
    atheris.Fuzz()


if __name__ == "__main__":
    main()
