"""This module contains general utility code that is used throughout
the library.
"""
import base64
import binascii

__all__ = ['Base64DecodeError', 'toBase64', 'fromBase64', 'force_text']


class Base64DecodeError(ValueError):
    """Text is not valid base64."""


def toBase64(s):
    """Return string s as base64, omitting newlines.

    @type s: bytes
    @rtype str
    """
    return binascii.b2a_base64(s)[:-1].decode('utf-8')


def fromBase64(s):
    """Return binary data from base64 encoded string.

    Characters outside of the base64 alphabet and incorrect padding
    are errors, they are not silently skipped.

    @type s: str
    @rtype bytes

    @raises Base64DecodeError: If C{s} is not valid base64
    """
    try:
        return base64.b64decode(s.encode('ascii'), validate=True)
    except (binascii.Error, UnicodeEncodeError) as why:
        # Convert to a common exception type
        raise Base64DecodeError(str(why))


def force_text(value):
    """
    Return a text object representing value in UTF-8 encoding.
    """
    if isinstance(value, str):
        # It's already a text, just return it.
        return value
    elif isinstance(value, bytes):
        # It's a byte string, decode it.
        return value.decode('utf-8')
    else:
        # It's not a string, convert it.
        return str(value)
