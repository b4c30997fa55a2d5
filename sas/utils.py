from sas.errors import EntropyError
from Cryptodome.Random import get_random_bytes
import gevent


def wait_for(_2_):
    """ Block until the channel `_2_` is written, then reset it.

    Returns:
        the data written on the channel
    """
    r = gevent.wait(objects=[_2_], count=1)
    r = r[0]
    _2_.reset()
    return r.read()

def read_one(*cs):
    """ Wait on several channels and take the first one written.

    Returns:
        (GenChannel, data): the channel that fired and what was on it
    """
    r = gevent.wait(objects=[*cs], count=1)
    assert len(r) == 1
    r[0].reset()
    return r[0], r[0].read()

def secure_random(n, source=None):
    """ Draw `n` bytes from a secure random source. There is no fallback:
    a failing or short source is fatal.

    Args:
        n (int): number of bytes
        source (callable): `get_random_bytes` unless given

    Throws:
        EntropyError: if the source raised or returned the wrong length

    Returns:
        (bytes): n random bytes
    """
    source = source if source is not None else get_random_bytes
    try:
        r = source(n)
    except (OSError, ValueError, NotImplementedError) as e:
        raise EntropyError(n, e) from e
    if not isinstance(r, bytes) or len(r) != n:
        got = len(r) if isinstance(r, bytes) else type(r).__name__
        raise EntropyError(n, 'source returned {}'.format(got))
    return r
