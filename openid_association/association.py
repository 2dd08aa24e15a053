# -*- test-case-name: openid_association.test.test_association -*-
"""
This module contains code for dealing with associations between
consumers and servers. Associations contain a shared secret that is
used to sign C{openid.mode=id_res} messages.

An association is created either from a freshly negotiated secret
with C{L{Association.fromExpiresIn}}, or loaded from its stored form
with C{L{Association.deserialize}}. The stored form is key-value form
with a fixed set and order of fields, shared by all OpenID libraries
that use this serialization version::

    version:2
    handle:{HMAC-SHA1}{4d2b5d3a}{x0BrAg==}
    secret:dmVyeV9zZWNyZXQ=
    issued:1293840000
    lifetime:1209600
    assoc_type:HMAC-SHA1

@var all_association_types: The association types that can be used
    for signing.

@var SERIALIZATION_VERSION: The only supported value of the C{version}
    field in serialized associations.
"""
import calendar
import logging
import re
import time

from openid_association import cryptutil, kvform, oidutil
from openid_association.oidutil import force_text

__all__ = [
    'Association',
    'AssociationError',
    'ParseError',
    'UnexpectedFields',
    'UnknownAssociationType',
    'UnsupportedVersion',
    'all_association_types',
    'getSecretSize',
]


_LOGGER = logging.getLogger(__name__)

SERIALIZATION_VERSION = '2'

all_association_types = [
    'HMAC-SHA256',
    'HMAC-SHA1',
]

# Integer seconds, optionally followed by a fractional part to be dropped
_SECONDS_RE = re.compile(r'\A([-+]?[0-9]+)(?:\.[0-9]*)?\Z')


class AssociationError(ValueError):
    """Base class for errors raised by associations."""


class UnexpectedFields(AssociationError):
    """Serialized association does not contain exactly the expected
    fields in the expected order.

    @ivar expected: The field names in the required order
    @ivar received: The field names found in the input
    """

    def __init__(self, expected, received):
        self.expected = list(expected)
        self.received = list(received)
        super(UnexpectedFields, self).__init__(
            'Unexpected fields in serialized association (expected %r, got %r)'
            % (self.expected, self.received))


class UnsupportedVersion(AssociationError):
    """Serialized association has an unknown version.

    @ivar version: The version found in the input
    """

    def __init__(self, version):
        self.version = version
        super(UnsupportedVersion, self).__init__(
            'Attempted to deserialize unsupported version: %r' % (version,))


class ParseError(AssociationError):
    """A numeric field of a serialized association is not a number."""

    def __init__(self, field, value):
        self.field = field
        self.value = value
        super(ParseError, self).__init__(
            'Invalid value for %s: %r is not a number of seconds' % (field, value))


class UnknownAssociationType(AssociationError):
    """Association type is not one of C{L{all_association_types}}."""

    def __init__(self, assoc_type):
        self.assoc_type = assoc_type
        super(UnknownAssociationType, self).__init__(
            'Unknown association type: %r' % (assoc_type,))


def getSecretSize(assoc_type):
    """Return the size in bytes of the secret for an association type.

    @raises UnknownAssociationType: If C{assoc_type} is not supported
    """
    if assoc_type == 'HMAC-SHA1':
        return 20
    elif assoc_type == 'HMAC-SHA256':
        return 32
    else:
        raise UnknownAssociationType(assoc_type)


def _parseSeconds(field, value):
    """Parse a serialized number of seconds, dropping any fraction."""
    match = _SECONDS_RE.match(value)
    if match is None:
        raise ParseError(field, value)
    return int(match.group(1))


class Association(object):
    """
    This class represents an association between a server and a
    consumer. Instances are immutable.

    The five values C{L{handle}}, C{L{secret}}, C{L{issued}},
    C{L{lifetime}} and C{L{assoc_type}} fully describe an association;
    a store needs to keep either those or the output of
    C{L{serialize}}.

    No validation is done on construction. An unsupported
    C{assoc_type} is reported when the association is used for
    signing, and a negative remaining lifetime simply means the
    association has expired.

    @cvar assoc_keys: The ordering and name of keys as stored by
        serialize.
    @type assoc_keys: List[str]

    @sort: __init__, fromExpiresIn, deserialize, serialize,
        getExpiresIn, getExpiresInAt, isExpired, sign, getSignature,
        checkSignature, handle, secret, issued, lifetime, assoc_type
    """

    # The ordering and name of keys as stored by serialize
    assoc_keys = [
        'version',
        'handle',
        'secret',
        'issued',
        'lifetime',
        'assoc_type',
    ]

    @classmethod
    def fromExpiresIn(cls, expires_in, handle, secret, assoc_type, now=None):
        """
        This is an alternate constructor used by the OpenID consumer
        and server to create associations from a freshly negotiated
        secret.


        @param expires_in: This is the amount of time this association
            is good for, measured in seconds since the association was
            issued.
        @type expires_in: int

        @param handle: This is the handle the server gave this
            association.
        @type handle: str

        @param secret: This is the shared secret the server generated
            for this association.
        @type secret: bytes

        @param assoc_type: This is the type of association this
            instance represents.
        @type assoc_type: str

        @param now: The issue time in seconds since the epoch. The
            current time is used when omitted.
        @type now: int
        """
        if now is None:
            now = time.time()
        issued = int(now)
        return cls(handle, secret, issued, expires_in, assoc_type)

    def __init__(self, handle, secret, issued, lifetime, assoc_type):
        """
        This is the standard constructor for creating an association.


        @param handle: This is the handle the server gave this
            association.
        @type handle: str


        @param secret: This is the shared secret the server generated
            for this association.
        @type secret: bytes


        @param issued: This is the time this association was issued,
            in seconds since 00:00 GMT, January 1, 1970.  (ie, a unix
            timestamp)
        @type issued: int


        @param lifetime: This is the amount of time this association
            is good for, measured in seconds since the association was
            issued.
        @type lifetime: int


        @param assoc_type: This is the type of association this
            instance represents, C{'HMAC-SHA1'} or C{'HMAC-SHA256'}.
        @type assoc_type: str
        """
        self._handle = handle
        self._secret = secret
        self._issued = issued
        self._lifetime = lifetime
        self._assoc_type = assoc_type

    @property
    def handle(self):
        """The handle the server gave this association."""
        return self._handle

    @property
    def secret(self):
        """The shared secret, as bytes."""
        return self._secret

    @property
    def issued(self):
        """The issue time, in seconds since the epoch."""
        return self._issued

    @property
    def lifetime(self):
        """Seconds the association is valid for after it was issued."""
        return self._lifetime

    @property
    def assoc_type(self):
        """The association type, C{'HMAC-SHA1'} or C{'HMAC-SHA256'}."""
        return self._assoc_type

    def getExpiresIn(self, now=None):
        """
        This returns the number of seconds this association is still
        valid for. A negative result means the association has
        already expired.

        @param now: The time to compare against, in seconds since the
            epoch. Fractions of a second are dropped. The current time
            is used when omitted.
        @type now: int

        @rtype: int
        """
        if now is None:
            now = time.time()

        return self.issued + self.lifetime - int(now)

    def getExpiresInAt(self, moment):
        """
        Same as C{L{getExpiresIn}}, for a C{datetime} instead of a
        number of seconds. A naive C{moment} is taken to be in UTC.

        @type moment: datetime.datetime
        @rtype: int
        """
        if moment.tzinfo is None:
            now = calendar.timegm(moment.utctimetuple())
        else:
            now = moment.timestamp()
        return self.getExpiresIn(now)

    expiresIn = property(getExpiresIn)

    def isExpired(self, now=None):
        """Return whether the association is no longer valid at C{now}."""
        return self.getExpiresIn(now) <= 0

    def __eq__(self, other):
        """
        This checks to see if two C{L{Association}} instances
        represent the same association.


        @return: C{True} if the two instances represent the same
            association, C{False} otherwise.

        @rtype: bool
        """
        if type(self) != type(other):
            return NotImplemented
        return (self.handle == other.handle
                and self.issued == other.issued
                and self.lifetime == other.lifetime
                and self.assoc_type == other.assoc_type
                and cryptutil.const_eq(self.secret, other.secret))

    def __ne__(self, other):
        result = self.__eq__(other)
        if result is NotImplemented:
            return result
        return not result

    def serialize(self):
        """
        Convert an association to KV form.

        @return: String in KV form suitable for deserialization by
            deserialize.

        @rtype: str

        @raises kvform.KVFormError: If a field can not be stored in
            KV form, such as a handle containing a newline
        """
        data = {
            'version': SERIALIZATION_VERSION,
            'handle': self.handle,
            'secret': oidutil.toBase64(self.secret),
            'issued': str(int(self.issued)),
            'lifetime': str(int(self.lifetime)),
            'assoc_type': self.assoc_type,
        }

        assert len(data) == len(self.assoc_keys)
        pairs = []
        for field_name in self.assoc_keys:
            pairs.append((field_name, data[field_name]))

        return kvform.seqToKV(pairs, strict=True)

    @classmethod
    def deserialize(cls, assoc_s):
        """
        Parse an association as stored by serialize().

        inverse of serialize


        @param assoc_s: Association as serialized by serialize()
        @type assoc_s: str

        @return: instance of this class

        @raises kvform.KVFormError: If C{assoc_s} is not valid KV form
        @raises UnexpectedFields: If the fields differ from
            C{L{assoc_keys}} in name, number or order
        @raises UnsupportedVersion: If the version is not
            C{L{SERIALIZATION_VERSION}}
        @raises oidutil.Base64DecodeError: If the secret is not base64
        @raises ParseError: If C{issued} or C{lifetime} is not a number
        """
        pairs = kvform.kvToSeq(assoc_s, strict=True)
        keys = []
        values = []
        for k, v in pairs:
            keys.append(k)
            values.append(v)

        if keys != cls.assoc_keys:
            _LOGGER.debug('Rejecting serialized association with fields %r', keys)
            raise UnexpectedFields(cls.assoc_keys, keys)

        version, handle, secret, issued, lifetime, assoc_type = values
        if version != SERIALIZATION_VERSION:
            _LOGGER.debug('Rejecting serialized association %r with version %r', handle, version)
            raise UnsupportedVersion(version)

        secret = oidutil.fromBase64(secret)
        issued = _parseSeconds('issued', issued)
        lifetime = _parseSeconds('lifetime', lifetime)
        return cls(handle, secret, issued, lifetime, assoc_type)

    def sign(self, pairs):
        """
        Generate a signature for a sequence of (key, value) pairs


        @param pairs: The pairs to sign, in order
        @type pairs: Iterable[Tuple[str, str]]

        @return: The binary signature of this sequence of pairs
        @rtype: bytes

        @raises UnknownAssociationType: If the association type is not
            one of C{L{all_association_types}}
        """
        kv = kvform.seqToKV(pairs).encode('utf-8')

        if self.assoc_type == 'HMAC-SHA1':
            return cryptutil.hmacSha1(self.secret, kv)
        elif self.assoc_type == 'HMAC-SHA256':
            return cryptutil.hmacSha256(self.secret, kv)
        else:
            raise UnknownAssociationType(self.assoc_type)

    def getSignature(self, pairs):
        """Return the signature of a sequence of pairs.

        @return: the signature, base64 encoded
        @rtype: str
        """
        return oidutil.toBase64(self.sign(pairs))

    def checkSignature(self, pairs, signature):
        """Given pairs and their signature, calculate a new signature
        and return whether it matches the given one.

        @param signature: The base64 encoded signature to check
        @type signature: str

        @rtype: bool

        @raises ValueError: if the signature is empty
        """
        if not signature:
            raise ValueError('No signature to check for association %r' % (self.handle,))
        calculated_sig = self.getSignature(pairs)
        return cryptutil.const_eq(calculated_sig.encode('utf-8'), force_text(signature).encode('utf-8'))

    def __repr__(self):
        return "<%s.%s %s %s>" % (
            self.__class__.__module__,
            self.__class__.__name__,
            self.assoc_type,
            self.handle)
