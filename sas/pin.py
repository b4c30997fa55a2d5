"""
Pin derivation for the SAS pairing protocol (Vaudenay SAS, as improved by
MA-3). The pin binds both messages and both nonces:

    key    = AES(key=r_initiator).encrypt(r_responder)
    digest = HMAC-SHA256(key, m_initiator || m_responder)
    pin    = first `length` digits of (byte % 10 for byte in digest)

Both parties feed the same bytes in the same order, the initiator because it
owns the cipher key and the responder because it opened the initiator's
commitment, so honest runs always produce equal pins.
"""
from Cryptodome.Cipher import AES
from Cryptodome.Hash import HMAC, SHA256
import hmac
import logging

log = logging.getLogger(__name__)

NONCE_SIZE = AES.block_size
PIN_LENGTH = 8
DIGEST_SIZE = SHA256.digest_size

def derive_key(key_nonce, plain_nonce):
    """ Encrypt one block, `plain_nonce`, under `key_nonce` (ECB, no padding).

    Throws:
        ValueError: if either nonce is not exactly one AES block
    """
    if len(key_nonce) != NONCE_SIZE or len(plain_nonce) != NONCE_SIZE:
        raise ValueError('nonces must be {} bytes, got {} and {}'.format(
            NONCE_SIZE, len(key_nonce), len(plain_nonce)))
    cipher = AES.new(key_nonce, AES.MODE_ECB)
    return cipher.encrypt(plain_nonce)

def check_digest(key, initiator_msg, responder_msg):
    h = HMAC.new(key, digestmod=SHA256)
    h.update(initiator_msg)
    h.update(responder_msg)
    return h.digest()

def retrieve_pin(r, length=PIN_LENGTH):
    """ Turn (random) bytes into a decimal pin of `length` digits, one digit
    per byte (`byte % 10`). The rest of `r` is discarded.

    Args:
        r (bytes): digest to read digits from
        length (int): number of digits

    Throws:
        ValueError: if `length` < 1 or `r` has fewer than `length` bytes
    """
    if length < 1:
        raise ValueError('pin length must be positive, got {}'.format(length))
    if len(r) < length:
        raise ValueError('digest of {} bytes is too short for a {} digit pin'.format(len(r), length))
    return ''.join(str(b % 10) for b in r[:length])

def initiator_pin(r_self, r_peer, m_self, m_peer, length=PIN_LENGTH):
    """ Pin as computed by the initiator: its own nonce keys the cipher and
    its own message goes first.
    """
    key = derive_key(r_self, r_peer)
    return retrieve_pin(check_digest(key, m_self, m_peer), length)

def responder_pin(r_self, r_peer, m_self, m_peer, length=PIN_LENGTH):
    """ Pin as computed by the responder. `r_peer` is the initiator's nonce,
    read from the opened commitment. It keys the cipher and the initiator's
    message `m_peer` goes first.
    """
    key = derive_key(r_peer, r_self)
    return retrieve_pin(check_digest(key, m_peer, m_self), length)

def pins_match(a, b):
    """ Constant time comparison of two pins. """
    return hmac.compare_digest(a.encode('ascii'), b.encode('ascii'))
