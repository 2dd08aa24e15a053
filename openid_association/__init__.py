"""
This package implements OpenID associations in Python: the shared
secret negotiated between a relying party and an OpenID provider,
together with the key-value form and HMAC primitives it relies on.
For information on using associations, see the
C{L{openid_association.association}} module.
"""

__version__ = '1.0.0'

# Parse the version info
try:
    version_info = tuple(map(int, __version__.split('.')))
except ValueError:
    version_info = (None, None, None)
else:
    if len(version_info) != 3:
        version_info = (None, None, None)
