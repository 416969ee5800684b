import sys

import atheris
from helpers import EnhancedDataProvider

with atheris.instrument_imports():
    from python_formdata.formdata import quote_string


def TestOneInput(data: bytes) -> None:
    fdp = EnhancedDataProvider(data)
    value = fdp.ConsumeRandomBytes()
    quoted = quote_string(value)

    # Every special byte must be preceded by a backslash.
    i = 0
    while i < len(quoted):
        c = quoted[i : i + 1]
        if c == b"\\":
            assert quoted[i + 1 : i + 2] in (b'"', b"\\", b"\r")
            i += 2
            continue
        assert c not in (b'"', b"\r")
        i += 1

    if not any(c in value for c in b'"\\\r'):
        assert quoted == value


def main():
    atheris.Setup(sys.argv, TestOneInput)
    atheris.Fuzz()


if __name__ == "__main__":
    main()
