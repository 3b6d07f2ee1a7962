"""
proofs.py - Eligibility proof verification

Region and age eligibility proofs are opaque byte blobs. This module only
defines the verification seam; real zero-knowledge verification lives
outside this package.

Classes:
- ProofVerifier: Protocol defining the verification interface
- StubProofVerifier: Accepts every proof
"""

from enum import Enum
from typing import Protocol, runtime_checkable


class ClaimKind(Enum):
    """What an eligibility proof claims about the buyer."""
    REGION = "region"
    AGE = "age"


@runtime_checkable
class ProofVerifier(Protocol):
    """
    Protocol for eligibility proof verifiers.

    Implementations must be synchronous and side-effect free: they run
    inside the transfer validation sequence.
    """

    def verify(self, proof: bytes, claim: ClaimKind) -> bool:
        """Return True if the proof establishes the claim."""
        ...


class StubProofVerifier:
    """Verifier that accepts every proof."""

    def verify(self, proof: bytes, claim: ClaimKind) -> bool:
        return True

    def __repr__(self):
        return "StubProofVerifier()"
