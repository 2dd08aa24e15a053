"""Module containing the keyed-hash primitives used to sign OpenID
messages.

The HMAC implementations come from the C{cryptography} package; this
module only fixes the hash algorithm for each association type.
"""
from cryptography.hazmat.backends import default_backend
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.constant_time import bytes_eq
from cryptography.hazmat.primitives.hmac import HMAC

__all__ = [
    'const_eq',
    'hmacSha1',
    'hmacSha256',
]


def _hmac(algorithm, key, text):
    hmac = HMAC(key, algorithm, backend=default_backend())
    hmac.update(text)
    return hmac.finalize()


def hmacSha1(key, text):
    """
    Return the HMAC-SHA1 of C{text} keyed with C{key}.

    @type key: bytes
    @type text: bytes
    @rtype: bytes
    @return: 20 byte authentication tag
    """
    return _hmac(hashes.SHA1(), key, text)


def hmacSha256(key, text):
    """
    Return the HMAC-SHA256 of C{text} keyed with C{key}.

    @type key: bytes
    @type text: bytes
    @rtype: bytes
    @return: 32 byte authentication tag
    """
    return _hmac(hashes.SHA256(), key, text)


def const_eq(left, right):
    """Compare two byte strings in constant time."""
    return bytes_eq(left, right)
