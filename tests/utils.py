from __future__ import annotations

from typing import List

PRIMARY_HASH = "account-hash-" + "aa" * 32
SECONDARY_HASH = "account-hash-" + "bb" * 32
THIRD_HASH = "account-hash-" + "0123456789abcdef" * 4


def byte_array(fill: int, count: int = 32) -> str:
    return "[" + ", ".join([str(fill)] * count) + "]"


def drain(lines, limit: int = 10_000) -> List[str]:
    out: List[str] = []
    for line in lines:
        out.append(line)
        if len(out) >= limit:
            break
    return out
