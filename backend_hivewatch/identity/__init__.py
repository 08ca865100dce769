# Identity: signer-approved login yielding the trusted username to track.

from backend_hivewatch.identity.session import IdentitySession, Signer, make_challenge

__all__ = ["IdentitySession", "Signer", "make_challenge"]
