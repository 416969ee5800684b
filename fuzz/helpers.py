from __future__ import annotations

import atheris


class EnhancedDataProvider(atheris.FuzzedDataProvider):
    def ConsumeRandomBytes(self) -> bytes:
        return self.ConsumeBytes(self.ConsumeIntInRange(0, self.remaining_bytes()))

    def ConsumeShortBytes(self, max_len: int = 64) -> bytes:
        return self.ConsumeBytes(self.ConsumeIntInRange(0, min(max_len, self.remaining_bytes())))

    def ConsumeOptionalBytes(self) -> bytes | None:
        if self.ConsumeBool():
            return self.ConsumeShortBytes()
        return None
