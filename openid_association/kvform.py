"""Utilities for key-value format conversions.

Key-value form is the canonical line-oriented encoding used by OpenID
for direct responses and for association storage: one C{key:value}
record per line, each line terminated by a newline. Order of records
is significant.
"""
import logging

__all__ = ['KVFormError', 'seqToKV', 'kvToSeq']


_LOGGER = logging.getLogger(__name__)


class KVFormError(ValueError):
    """Key-value form text or input pairs are malformed."""


def seqToKV(seq, strict=False):
    """Represent a sequence of pairs of strings as newline-terminated
    key:value pairs. The pairs are generated in the order given.

    Keys containing a newline or a colon and values containing a
    newline always raise C{L{KVFormError}}, as they can not be
    represented unambiguously. In strict mode, non-text items and
    leading or trailing whitespace raise as well; otherwise they are
    logged and converted.

    @param seq: The pairs
    @type seq: Iterable[Tuple[str, str]]

    @param strict: Whether to raise on recoverable problems
    @type strict: bool

    @return: A string representation of the sequence
    @rtype: str

    @raises KVFormError: If the sequence can not be encoded
    """
    def err(msg):
        formatted = 'seqToKV warning: %s' % (msg,)
        if strict:
            raise KVFormError(formatted)
        else:
            _LOGGER.debug(formatted)

    lines = []
    for k, v in seq:
        if not isinstance(k, str):
            err('Converting key to text: %r' % (k,))
            k = str(k)
        if not isinstance(v, str):
            err('Converting value to text: %r' % (v,))
            v = str(v)

        if '\n' in k:
            raise KVFormError(
                'Invalid input for seqToKV: key contains newline: %r' % (k,))

        if ':' in k:
            raise KVFormError(
                'Invalid input for seqToKV: key contains colon: %r' % (k,))

        if k.strip() != k:
            err('Key has whitespace at beginning or end: %r' % (k,))

        if '\n' in v:
            raise KVFormError(
                'Invalid input for seqToKV: value for key %r contains newline' % (k,))

        if v.strip() != v:
            err('Value for key %r has whitespace at beginning or end' % (k,))

        lines.append(k + ':' + v + '\n')

    return ''.join(lines)


def kvToSeq(data, strict=False):
    """
    Parse newline-terminated key:value pair string into a sequence.

    After one parse, seqToKV and kvToSeq are inverses, with no warnings::

        seq = kvToSeq(s)
        seqToKV(kvToSeq(seq)) == seq

    @type data: str

    @param strict: Whether to raise on malformed lines instead of
        logging and skipping them
    @type strict: bool

    @rtype: List[Tuple[str, str]]

    @raises KVFormError: In strict mode, if C{data} is malformed
    """
    def err(msg):
        formatted = 'kvToSeq warning: %s' % (msg,)
        if strict:
            raise KVFormError(formatted)
        else:
            _LOGGER.debug(formatted)

    if not isinstance(data, str):
        raise TypeError('Key-value form data must be text, got %r' % (type(data),))

    lines = data.split('\n')
    if lines[-1]:
        err('Does not end in a newline')
    else:
        del lines[-1]

    pairs = []
    line_num = 0
    for line in lines:
        line_num += 1

        # Ignore blank lines
        if not line.strip():
            continue

        pair = line.split(':', 1)
        if len(pair) == 2:
            k, v = pair
            k_s = k.strip()
            if k_s != k:
                fmt = ('In line %d, ignoring leading or trailing '
                       'whitespace in key %r')
                err(fmt % (line_num, k))

            if not k_s:
                err('In line %d, got empty key' % (line_num,))

            v_s = v.strip()
            if v_s != v:
                fmt = ('In line %d, ignoring leading or trailing '
                       'whitespace in value for key %r')
                err(fmt % (line_num, k_s))

            pairs.append((k_s, v_s))
        else:
            err('Line %d does not contain a colon' % line_num)

    return pairs
