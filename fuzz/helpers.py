import atheris


class EnhancedDataProvider(atheris.FuzzedDataProvider):
    def ConsumeRandomBytes(self) -> bytes:
        return self.ConsumeBytes(self.ConsumeIntInRange(0, self.remaining_bytes()))

    def ConsumeRandomString(self) -> str:
        return self.ConsumeUnicodeNoSurrogates(self.ConsumeIntInRange(0, self.remaining_bytes()))

    def ConsumeShortString(self, max_len: int = 32) -> str:
        return self.ConsumeUnicodeNoSurrogates(self.ConsumeIntInRange(0, max_len))

    def ConsumeMultipartBody(self, boundary: str) -> bytes:
        """Builds a body of well-formed parts with fuzzed names, files and values."""
        body = b""
        for _ in range(self.ConsumeIntInRange(0, 8)):
            name = self.ConsumeShortString()
            disposition = f'Content-Disposition: form-data; name="{name}"'
            if self.ConsumeBool():
                disposition += f'; filename="{self.ConsumeShortString()}"\r\nContent-Type: {self.ConsumeShortString()}'
            body += f"--{boundary}\r\n{disposition}\r\n\r\n".encode("utf-8", errors="ignore")
            body += self.ConsumeBytes(self.ConsumeIntInRange(0, 256)) + b"\r\n"
        return body + f"--{boundary}--\r\n".encode()
