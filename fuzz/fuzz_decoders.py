import sys

import atheris
from helpers import EnhancedDataProvider

with atheris.instrument_imports():
    from body_parser.decoders import decode_json, decode_text, decode_urlencoded
    from body_parser.exceptions import DecodeError


def fuzz_json_decoder(fdp: EnhancedDataProvider) -> None:
    decode_json(fdp.ConsumeRandomBytes())


def fuzz_text_decoder(fdp: EnhancedDataProvider) -> None:
    decode_text(fdp.ConsumeRandomBytes())


def fuzz_urlencoded_decoder(fdp: EnhancedDataProvider) -> None:
    decode_urlencoded(fdp.ConsumeRandomBytes())


def TestOneInput(data: bytes) -> None:
    fdp = EnhancedDataProvider(data)
    targets = [fuzz_json_decoder, fuzz_text_decoder, fuzz_urlencoded_decoder]
    target = fdp.PickValueInList(targets)

    try:
        target(fdp)
    except DecodeError:
        return


def main():
    atheris.Setup(sys.argv, TestOneInput)
    atheris.Fuzz()


if __name__ == "__main__":
    main()
