"""Audience filtering for public notifications (core domain)."""

from __future__ import annotations

from typing import Iterable, List, Sequence

from core.models import DiffEntry


def normalize_address(address: str) -> str:
    """Return the comparison form of a contract address.

    Hex addresses arrive both checksummed and lower-cased depending on the
    tool that produced them, so comparisons ignore case.
    """

    return address.strip().lower()


def filter_diff(diff: Sequence[DiffEntry], unknown_contracts: Iterable[str]) -> List[DiffEntry]:
    """Drop entries that touch contracts nobody has reviewed yet.

    Matching is an exact address match after normalisation; the order of the
    remaining entries is preserved and the input is left untouched.
    """

    unknown = {normalize_address(address) for address in unknown_contracts}
    if not unknown:
        return list(diff)
    return [entry for entry in diff if normalize_address(entry.address) not in unknown]
