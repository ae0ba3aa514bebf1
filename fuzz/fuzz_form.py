import sys

import atheris
from helpers import EnhancedDataProvider

with atheris.instrument_imports():
    from body_parser.exceptions import BodyParserError
    from body_parser.formdata import parse_multipart


def parse_multipart_form_data(fdp: EnhancedDataProvider) -> None:
    boundary = "boundary"
    body = (
        f"--{boundary}\r\n"
        'Content-Disposition: form-data; name="field"\r\n\r\n'
        f"{fdp.ConsumeRandomString()}\r\n"
        f"--{boundary}--\r\n"
    )
    parse_multipart(body.encode("latin1", errors="ignore"), boundary)


def parse_random_multipart(fdp: EnhancedDataProvider) -> None:
    parse_multipart(
        fdp.ConsumeRandomBytes(),
        "boundary",
        {"FILE_COUNT_LIMIT": 10, "FILE_SIZE_LIMIT": 1024},
    )


def parse_generated_multipart(fdp: EnhancedDataProvider) -> None:
    parse_multipart(fdp.ConsumeMultipartBody("boundary"), b"boundary")


def TestOneInput(data: bytes) -> None:
    fdp = EnhancedDataProvider(data)
    targets = [parse_multipart_form_data, parse_random_multipart, parse_generated_multipart]
    target = fdp.PickValueInList(targets)

    try:
        target(fdp)
    except BodyParserError:
        return


def main():
    atheris.Setup(sys.argv, TestOneInput)
    atheris.Fuzz()


if __name__ == "__main__":
    main()
