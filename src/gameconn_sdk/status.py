from __future__ import annotations

from dataclasses import dataclass
from enum import IntFlag


class CommStatus(IntFlag):
    # progress
    LB = 1
    SIGN = 2
    SIGN_CODE = 4
    OPEN_ID = 8
    LOGGED_IN = 16
    # requirements
    REQUIRES_SIGN = 1024
    REQUIRES_LB = 2048
    REQUIRES_OPEN_ID = 4096


@dataclass
class StatusFlags:
    """Bitmask of CommStatus bits owned by a single session."""

    value: int = 0

    def check(self, mask: int) -> bool:
        mask = int(mask)
        return (self.value & mask) == mask

    def set(self, bit: int) -> StatusFlags:
        self.value |= int(bit)
        return self

    def reset(self, bit: int) -> StatusFlags:
        self.value &= ~int(bit)
        return self

    def init(self, mask: int = 0) -> StatusFlags:
        self.value = int(mask)
        return self

    def describe(self) -> list[str]:
        return [member.name for member in CommStatus if member.name and self.value & member]
