from __future__ import annotations

import re

from pool_analytics.domain.exceptions import InvalidAddressError


ADDRESS_PATTERN = re.compile(r"^0x[0-9a-f]{40}$")


def normalize_address(value: str | None, *, field_name: str = "address") -> str:
    if not value or not value.strip():
        raise InvalidAddressError(f"{field_name} is required.")
    address = value.strip().lower()
    if not ADDRESS_PATTERN.match(address):
        raise InvalidAddressError(f"{field_name} must be a 0x-prefixed 20-byte hex address.")
    return address
