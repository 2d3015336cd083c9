"""
Offline verification of Google Play purchase receipt signatures.

Google signs the ``originalJson`` of every in-app purchase with the app's
licence key (RSASSA-PKCS1-v1_5 over SHA-1). The public half of that key is
shown in Play Console as a base64 X.509 SubjectPublicKeyInfo blob.

Inputs that cannot be evaluated (bad base64, a key that is not RSA) are
reported as a ``SignatureErrorKind``. A signature that is well formed but does
not match is *not* an error: the result is simply ``valid=False``.
"""
import base64
import binascii
import enum
from dataclasses import dataclass
from typing import Optional, Union

from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa

from app.utils.logger import get_logger

logger = get_logger(__name__)


class SignatureErrorKind(str, enum.Enum):
    INVALID_KEY_ENCODING = "invalid_key_encoding"
    UNSUPPORTED_OR_MALFORMED_KEY = "unsupported_or_malformed_key"
    INVALID_SIGNATURE_ENCODING = "invalid_signature_encoding"

    @property
    def message(self) -> str:
        return _ERROR_MESSAGES[self]


_ERROR_MESSAGES = {
    SignatureErrorKind.INVALID_KEY_ENCODING: "failed to decode public key",
    SignatureErrorKind.UNSUPPORTED_OR_MALFORMED_KEY: "failed to parse public key",
    SignatureErrorKind.INVALID_SIGNATURE_ENCODING: "failed to decode signature",
}


class SignatureError(ValueError):
    """Raised by ``load_public_key`` when the key cannot be used."""

    def __init__(self, kind: SignatureErrorKind):
        super().__init__(kind.message)
        self.kind = kind


@dataclass(frozen=True)
class VerificationResult:
    valid: bool
    error: Optional[SignatureErrorKind] = None

    @property
    def message(self) -> Optional[str]:
        return self.error.message if self.error else None


def _b64decode(value: str) -> bytes:
    # Keys copied from Play Console are often wrapped; line breaks are the
    # only characters outside the standard alphabet that are tolerated
    if isinstance(value, str):
        value = value.replace("\r", "").replace("\n", "")
    return base64.b64decode(value, validate=True)


def load_public_key(public_key: str) -> rsa.RSAPublicKey:
    """
    Decode a base64 DER SubjectPublicKeyInfo and return its RSA key.

    Raises:
        SignatureError: ``INVALID_KEY_ENCODING`` when the text is not base64,
            ``UNSUPPORTED_OR_MALFORMED_KEY`` when it is not an RSA public key.
    """
    try:
        der = _b64decode(public_key)
    except (binascii.Error, ValueError, TypeError):
        raise SignatureError(SignatureErrorKind.INVALID_KEY_ENCODING)

    try:
        key = serialization.load_der_public_key(der)
    except (ValueError, UnsupportedAlgorithm):
        raise SignatureError(SignatureErrorKind.UNSUPPORTED_OR_MALFORMED_KEY)

    if not isinstance(key, rsa.RSAPublicKey):
        raise SignatureError(SignatureErrorKind.UNSUPPORTED_OR_MALFORMED_KEY)
    return key


def verify_signature(public_key: str, receipt: Union[bytes, str], signature: str) -> VerificationResult:
    """
    Check that ``signature`` was produced over ``receipt`` by the holder of
    ``public_key``.

    Args:
        public_key: base64 DER public key from Play Console
        receipt: receipt JSON exactly as delivered by the store. ``str`` is
            encoded as UTF-8, nothing else is done to it.
        signature: base64 signature delivered alongside the receipt

    Returns:
        VerificationResult: ``valid`` is True only for a matching signature.
        ``error`` is set only when an input could not be decoded or parsed.
    """
    try:
        key = load_public_key(public_key)
    except SignatureError as e:
        logger.warning(f"Receipt signature not checked: {e.kind.message}")
        return VerificationResult(valid=False, error=e.kind)

    try:
        raw_signature = _b64decode(signature)
    except (binascii.Error, ValueError, TypeError):
        kind = SignatureErrorKind.INVALID_SIGNATURE_ENCODING
        logger.warning(f"Receipt signature not checked: {kind.message}")
        return VerificationResult(valid=False, error=kind)

    if isinstance(receipt, str):
        receipt = receipt.encode("utf-8")

    try:
        key.verify(raw_signature, receipt, padding.PKCS1v15(), hashes.SHA1())
    except InvalidSignature:
        logger.info("Receipt signature does not match")
        return VerificationResult(valid=False)

    return VerificationResult(valid=True)
