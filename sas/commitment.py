"""
Commitments used by the initiator to bind its nonce before the responder
answers.

`IdealCommitment` is the ideal commitment functionality: binding and hiding
hold by assumption and the only state is the `is_protected` flag. It is what
the pairing protocol is proven secure with, not a construction. For use beyond
demonstration `HashCommitment` commits to SHA256(salt || value) and the
receiver checks the opening against the digest it was sent.

Commitments are immutable. `decommit` returns a new, unprotected copy and
`seal` returns the copy that goes on the wire, so a committer can never reach
into a commitment it already sent.
"""
from sas.errors import CommitmentMismatch, CommitmentProtected
from sas.utils import secure_random
from Cryptodome.Hash import SHA256
import hmac
import logging

log = logging.getLogger(__name__)

SALT_SIZE = 32

class Commitment:
    """ Capability interface shared by all commitment schemes.

    Attributes:
        scheme (str): short name of the scheme, used in errors and the cli
    """
    scheme = None

    __slots__ = ('_value', '_is_protected')

    def __init__(self, value, is_protected=True):
        object.__setattr__(self, '_value', value)
        object.__setattr__(self, '_is_protected', is_protected)

    def __setattr__(self, name, value):
        raise AttributeError('{} is immutable'.format(type(self).__name__))

    @property
    def is_protected(self):
        return self._is_protected

    @classmethod
    def commit(cls, value, entropy=None):
        """ Create a protected commitment over `value`. """
        raise NotImplementedError

    def open(self):
        """ Return the committed value.

        Throws:
            CommitmentProtected: if the committer has not decommitted yet
        """
        if self._is_protected:
            raise CommitmentProtected(self.scheme)
        return self._value

    def decommit(self):
        raise NotImplementedError

    def seal(self):
        raise NotImplementedError

    def verify(self, opened):
        raise NotImplementedError

    def __repr__(self):
        return '{}(is_protected={})'.format(type(self).__name__, self._is_protected)


class IdealCommitment(Commitment):
    """ The ideal functionality: a value behind a flag. """
    scheme = 'ideal'

    __slots__ = ()

    @classmethod
    def commit(cls, value, entropy=None):
        return cls(bytes(value), True)

    def decommit(self):
        return IdealCommitment(self._value, False)

    def seal(self):
        return IdealCommitment(self._value, self._is_protected)

    def verify(self, opened):
        """ Accept the opening of this sealed commitment.

        Args:
            opened (IdealCommitment): the commitment the committer revealed

        Throws:
            CommitmentProtected: if `opened` was never decommitted
            CommitmentMismatch: if `opened` wraps another value

        Returns:
            (IdealCommitment): `opened`
        """
        if not isinstance(opened, IdealCommitment):
            raise CommitmentMismatch(self.scheme)
        value = opened.open()
        if not hmac.compare_digest(value, self._value):
            raise CommitmentMismatch(self.scheme)
        return opened


class HashCommitment(Commitment):
    """ Commit to `value` as SHA256(salt || value) with a fresh random salt.
    The sealed copy carries the digest only.
    """
    scheme = 'hash'

    __slots__ = ('_salt', '_digest')

    def __init__(self, value, salt, digest, is_protected=True):
        Commitment.__init__(self, value, is_protected)
        object.__setattr__(self, '_salt', salt)
        object.__setattr__(self, '_digest', digest)

    @staticmethod
    def _hash(salt, value):
        return SHA256.new(salt + value).digest()

    @property
    def digest(self):
        return self._digest

    @classmethod
    def commit(cls, value, entropy=None):
        value = bytes(value)
        salt = secure_random(SALT_SIZE, entropy)
        return cls(value, salt, cls._hash(salt, value), True)

    def open(self):
        """ Return the committed value.

        A sealed copy holds the digest only. Decommitting it clears the flag
        but gives it no value, only the committer's opening has one.

        Throws:
            CommitmentProtected: if the commitment is still protected
            CommitmentMismatch: if this is a sealed copy, protected or not
        """
        if self._is_protected:
            raise CommitmentProtected(self.scheme)
        if self._value is None:
            raise CommitmentMismatch(self.scheme)
        return self._value

    def decommit(self):
        return HashCommitment(self._value, self._salt, self._digest, False)

    def seal(self):
        return HashCommitment(None, None, self._digest, self._is_protected)

    def verify(self, opened):
        """ Check that `opened` hashes to the digest of this sealed copy.

        Throws:
            CommitmentProtected: if `opened` was never decommitted
            CommitmentMismatch: if value and salt do not hash to the digest

        Returns:
            (HashCommitment): `opened`
        """
        if not isinstance(opened, HashCommitment):
            raise CommitmentMismatch(self.scheme)
        value = opened.open()
        if opened._salt is None:
            raise CommitmentMismatch(self.scheme)
        if not hmac.compare_digest(self._hash(opened._salt, value), self._digest):
            log.debug('hash commitment opening rejected')
            raise CommitmentMismatch(self.scheme)
        return opened


SCHEMES = {
    IdealCommitment.scheme: IdealCommitment,
    HashCommitment.scheme: HashCommitment,
}

def commit(value, scheme=IdealCommitment, entropy=None):
    """ Commit to `value` with `scheme`. The result is protected. """
    return scheme.commit(value, entropy)

def open_commitment(c):
    return c.open()

def decommit(c):
    return c.decommit()
