"""
Content fingerprints for job postings.

A posting's identity is (title, organisation, source URL). The signature is
normalized so casing/whitespace variants of the same posting hash equally:

    collapse_ws(lower(title)) || lower(organisation) || source_url

str.lower() is locale-independent, so the digest is stable across machines.
"""
import hashlib
from typing import Callable, Iterable, Union

from jobfeed.models.job import CandidateJob
from jobfeed.pipeline.normalize import collapse_ws

SEPARATOR = "||"


def signature(candidate: CandidateJob) -> str:
    return SEPARATOR.join([
        collapse_ws((candidate.title or "").lower()),
        (candidate.organisation or "").lower().strip(),
        candidate.source_url or "",
    ])


def fingerprint(candidate: CandidateJob) -> str:
    return hashlib.sha256(signature(candidate).encode("utf-8")).hexdigest()


def filter_new(
    existing_hashes: Union[set[str], Callable[[list[str]], set[str]]],
    candidates: Iterable[CandidateJob],
) -> list[tuple[str, CandidateJob]]:
    """
    Keep candidates whose fingerprint is not already known, paired with it.

    existing_hashes is either a set of known hashes or a lookup called once
    with every hash in the batch (e.g. storage.existing_hashes bound to a
    session). Repeats inside the batch are dropped too; first occurrence wins.
    """
    hashed = [(fingerprint(c), c) for c in candidates]
    if callable(existing_hashes):
        known = existing_hashes([h for h, _ in hashed]) if hashed else set()
    else:
        known = existing_hashes

    seen = set(known)
    fresh: list[tuple[str, CandidateJob]] = []
    for h, c in hashed:
        if h in seen:
            continue
        seen.add(h)
        fresh.append((h, c))
    return fresh
