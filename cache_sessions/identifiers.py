"""
Construction and validation of session identifiers.

An identifier is the URL-safe base64 encoding (without padding) of::

    random bytes | expires at (optional) | HMAC (optional)

The expiry is an 8-byte big-endian double holding a Unix time in
milliseconds, and is present only when both a key and ``expires_in`` are
configured. The HMAC covers everything before it and is present whenever a
key is configured.

An identifier is a pure function of its random bytes, expiry, key and
algorithm, so it is validated by building it again from its own parts and
comparing the result with the original. No server-side lookup is involved.
"""

from typing import NamedTuple, Optional
import binascii
import hmac
import secrets
import struct
import time
from base64 import urlsafe_b64encode, b64decode

from .config import SessionConfig
from .exceptions import IdentifierConstructionError

EXPIRES_AT = struct.Struct('>d')


class ValidationResult(NamedTuple):
    """Outcome of :meth:`IdentifierCodec.validate`."""

    valid: bool

    random_bytes: Optional[bytes] = None
    """Random part of a valid identifier."""

    expires_at: Optional[float] = None
    """
    Expiry (Unix time, ms) of a valid or expired identifier.

    Set on an invalid result only when the identifier was rejected because it
    expired.
    """

    @property
    def expired(self) -> bool:
        """Whether the identifier was rejected because it expired."""
        return not self.valid and self.expires_at is not None


INVALID = ValidationResult(valid=False)


def now() -> float:
    """Get the current Unix time in milliseconds."""
    return time.time() * 1000


def encode(raw: bytes) -> str:
    """Encode ``raw`` as URL-safe base64 without padding."""
    return urlsafe_b64encode(raw).rstrip(b'=').decode('ascii')


def decode(value: str) -> bytes:
    """
    Decode URL-safe base64 without padding.

    Raises
    ------
    ValueError
        Raised if ``value`` is not valid base64.

    """
    padded = value + '=' * (-len(value) % 4)
    return b64decode(padded.encode('ascii'), altchars=b'-_', validate=True)


class IdentifierCodec(object):
    """Builds and checks session identifiers for one :class:`.SessionConfig`."""

    def __init__(self, config: SessionConfig) -> None:
        self.config = config

    @property
    def min_size(self) -> int:
        """Shortest decoded length a well-formed identifier can have."""
        if self.config.expiring:
            return self.config.size + EXPIRES_AT.size
        return self.config.size

    def construct(self, random_bytes: Optional[bytes] = None,
                  expires_at: Optional[float] = None) -> str:
        """
        Build a session identifier.

        Parameters
        ----------
        random_bytes : bytes
            Random part of the identifier. Drawn from the system's secure
            random source if not given.
        expires_at : float
            Expiry time (Unix time, ms). Defaults to ``expires_in`` from now.
            Ignored unless the configuration has both a key and
            ``expires_in``.

        Returns
        -------
        str

        Raises
        ------
        :class:`IdentifierConstructionError`
            Raised if the configured algorithm is not supported.

        """
        if random_bytes is None:
            random_bytes = secrets.token_bytes(self.config.size)
        parts = [random_bytes]
        if self.config.key:
            if self.config.expires_in:
                if expires_at is None:
                    expires_at = now() + self.config.expires_in
                parts.append(EXPIRES_AT.pack(expires_at))
            try:
                signature = hmac.new(self.config.key, b''.join(parts),
                                     self.config.algorithm)
            except ValueError as e:
                raise IdentifierConstructionError(
                    f'Unsupported algorithm: {self.config.algorithm}'
                ) from e
            parts.append(signature.digest())
        return encode(b''.join(parts))

    def validate(self, candidate: str) -> ValidationResult:
        """
        Check whether ``candidate`` is a well-formed, unexpired identifier.

        This never raises: any malformed, truncated, expired, or tampered
        identifier simply produces an invalid result.
        """
        try:
            decoded = decode(candidate)
        except (binascii.Error, ValueError):
            return INVALID
        if len(decoded) < self.min_size:
            return INVALID

        random_bytes = decoded[:self.config.size]
        expires_at = None
        if self.config.expiring:
            expires_at, = EXPIRES_AT.unpack_from(decoded, self.config.size)
            if now() >= expires_at:
                return ValidationResult(valid=False, expires_at=expires_at)
        try:
            expected = self.construct(random_bytes, expires_at)
        except IdentifierConstructionError:
            return INVALID
        if not hmac.compare_digest(expected, candidate):
            return INVALID
        return ValidationResult(valid=True, random_bytes=random_bytes,
                                expires_at=expires_at)
