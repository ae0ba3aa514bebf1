import sys

import atheris
from helpers import EnhancedDataProvider

with atheris.instrument_imports():
    from body_parser.formdata import get_boundary, parse_options_header


def fuzz_content_type(fdp: EnhancedDataProvider) -> None:
    parse_options_header(fdp.ConsumeRandomString())


def fuzz_boundary(fdp: EnhancedDataProvider) -> None:
    get_boundary("multipart/form-data; boundary=" + fdp.ConsumeRandomString())


def TestOneInput(data: bytes) -> None:
    fdp = EnhancedDataProvider(data)
    target = fdp.PickValueInList([fuzz_content_type, fuzz_boundary])
    try:
        target(fdp)
    except AssertionError:
        return
    except UnicodeEncodeError:
        # Parameter values outside latin-1.
        return


def main():
    atheris.Setup(sys.argv, TestOneInput)
    atheris.Fuzz()


if __name__ == "__main__":
    main()
