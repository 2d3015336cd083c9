# Google Play receipt verification and purchase management

from .signature import (
    SignatureError,
    SignatureErrorKind,
    VerificationResult,
    load_public_key,
    verify_signature,
)
from .errors import PlayStoreError, CredentialError
from .client import GooglePlayClient, VoidedPurchasesPage

__all__ = [
    "SignatureError",
    "SignatureErrorKind",
    "VerificationResult",
    "load_public_key",
    "verify_signature",
    "PlayStoreError",
    "CredentialError",
    "GooglePlayClient",
    "VoidedPurchasesPage",
]
