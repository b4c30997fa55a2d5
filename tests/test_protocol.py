import re

import pytest

from sas.commitment import HashCommitment, IdealCommitment
from sas.errors import CommitmentMismatch, CommitmentProtected, EntropyError, ProtocolOrderError
from sas.execsas import K, create_sas, run_sas
from sas.pin import initiator_pin, pins_match
from sas.protocol import Phase, SASProtocol
from Cryptodome.Random import get_random_bytes

PIN = re.compile(r'^[0-9]{8}$')

@pytest.fixture(params=[IdealCommitment, HashCommitment], ids=['ideal', 'hash'])
def session(request):
    s = create_sas(K, 'AlicePublicKey', 'BobPublicKey', scheme=request.param)
    yield s
    s.close()

def test_exchange_produces_equal_pins(session):
    a, b = session.run()
    assert PIN.match(a)
    assert PIN.match(b)
    assert a == b
    assert pins_match(a, b)

@pytest.mark.parametrize('scheme', [IdealCommitment, HashCommitment])
def test_pins_equal_over_many_runs(scheme):
    for _ in range(200):
        a, b = run_sas('AlicePublicKey', 'BobPublicKey', scheme=scheme)
        assert PIN.match(a)
        assert a == b

def test_pin_matches_direct_derivation(session):
    a, b = session.run()
    alice = session.parties[session.initiator]
    bob = session.parties[session.responder]
    assert a == initiator_pin(alice.nonce, bob.nonce, b'AlicePublicKey', b'BobPublicKey')
    assert bob.peer_nonce == alice.nonce
    assert alice.peer_nonce == bob.nonce

def test_phases_follow_the_exchange(session):
    alice = session.parties[session.initiator]
    bob = session.parties[session.responder]
    assert (alice.phase, bob.phase) == (Phase.FRESH, Phase.FRESH)
    session.commit_to()
    assert (alice.phase, bob.phase) == (Phase.COMMITTED, Phase.RECEIVED)
    assert bob.peer_msg == b'AlicePublicKey'
    assert bob.peer_commitment.is_protected
    session.send_to()
    assert (alice.phase, bob.phase) == (Phase.RECEIVED, Phase.SENT)
    session.reveal()
    assert (alice.phase, bob.phase) == (Phase.REVEALED, Phase.OPENED)
    assert not bob.peer_commitment.is_protected
    session.check_both()
    assert (alice.phase, bob.phase) == (Phase.CHECKED, Phase.CHECKED)

def test_check_both(session):
    session.commit_to()
    session.send_to()
    session.reveal()
    a, b = session.check_both()
    assert PIN.match(a)
    assert a == b

def test_responder_check_before_reveal(session):
    session.commit_to()
    session.send_to()
    with pytest.raises(CommitmentProtected):
        session.check(session.responder)
    assert session.parties[session.responder].pin is None

def test_responder_check_before_send(session):
    session.commit_to()
    with pytest.raises(CommitmentProtected):
        session.check(session.responder)

def test_check_after_protected_error_and_reveal(session):
    session.commit_to()
    session.send_to()
    with pytest.raises(CommitmentProtected):
        session.check(session.responder)
    session.reveal()
    assert session.check(session.responder) == session.check(session.initiator)

def test_responder_check_before_commit(session):
    with pytest.raises(ProtocolOrderError):
        session.check(session.responder)

def test_initiator_check_before_reveal(session):
    session.commit_to()
    session.send_to()
    with pytest.raises(ProtocolOrderError) as e:
        session.check(session.initiator)
    assert e.value.phase is Phase.RECEIVED

def test_send_before_commit(session):
    with pytest.raises(ProtocolOrderError):
        session.send_to()

def test_reveal_before_send(session):
    session.commit_to()
    with pytest.raises(ProtocolOrderError):
        session.reveal()

def test_commit_twice(session):
    session.commit_to()
    with pytest.raises(ProtocolOrderError):
        session.commit_to()

def test_roles_are_fixed(session):
    with pytest.raises(ProtocolOrderError):
        session.step(session.responder, ('commit',))
    with pytest.raises(ProtocolOrderError):
        session.step(session.initiator, ('send',))

class LyingInitiator(SASProtocol):
    """Opens its commitment to a nonce it did not commit to."""
    def reveal(self):
        other = bytes(b ^ 0xff for b in self.nonce)
        self.phase = Phase.REVEALED
        self.write('p2o', ('open', self.scheme.commit(other).decommit()))

@pytest.mark.parametrize('scheme', [IdealCommitment, HashCommitment])
def test_responder_rejects_changed_nonce(scheme):
    s = create_sas(K, 'AlicePublicKey', 'BobPublicKey', scheme=scheme, prot=LyingInitiator)
    try:
        s.commit_to()
        s.send_to()
        with pytest.raises(CommitmentMismatch):
            s.reveal()
        with pytest.raises(CommitmentProtected):
            s.check(s.responder)
    finally:
        s.close()

def test_messages_differ_pins_still_equal():
    a, b = run_sas(b'\x00\x01fingerprint', 'other fingerprint')
    assert a == b

def test_custom_pin_length():
    a, b = run_sas('AlicePublicKey', 'BobPublicKey', pin_length=6)
    assert re.match(r'^[0-9]{6}$', a)
    assert a == b

def test_fixed_entropy_is_deterministic():
    counter = iter(range(1, 1000))
    def source(n):
        return bytes([next(counter)]) * n
    first = run_sas('AlicePublicKey', 'BobPublicKey', entropy=source)
    counter = iter(range(1, 1000))
    assert run_sas('AlicePublicKey', 'BobPublicKey', entropy=source) == first

def test_entropy_failure_is_fatal():
    def broken(n):
        raise OSError('no entropy')
    with pytest.raises(EntropyError):
        create_sas(K, 'AlicePublicKey', 'BobPublicKey', entropy=broken)

def exhausted_after(calls):
    """An entropy source that serves `calls` draws and then fails."""
    left = [calls]
    def source(n):
        if left[0] == 0:
            raise OSError('entropy pool exhausted')
        left[0] -= 1
        return get_random_bytes(n)
    return source

def test_salt_entropy_failure_stops_the_session():
    # two nonces are drawn at construction, the salt is the third draw
    s = create_sas(K, 'AlicePublicKey', 'BobPublicKey', scheme=HashCommitment, entropy=exhausted_after(2))
    try:
        with pytest.raises(EntropyError):
            s.commit_to()
        assert s.parties[s.initiator].phase is Phase.FRESH
        assert s.greenlets[0].dead
        with pytest.raises(EntropyError):
            s.send_to()
        with pytest.raises(EntropyError):
            s.check_both()
    finally:
        s.close()

def test_malformed_input_stops_the_session(session):
    with pytest.raises(TypeError):
        session.step(session.initiator, ('commit', 'extra'))
    with pytest.raises(TypeError):
        session.commit_to()

def test_check_both_too_early_leaves_session_in_step(session):
    session.commit_to()
    session.send_to()
    with pytest.raises(ProtocolOrderError):
        session.check_both()
    assert not any(c['p2z'].is_set() for c in session.channels.values())
    session.reveal()
    a, b = session.check_both()
    assert PIN.match(a)
    assert a == b

def test_bad_parameters():
    with pytest.raises(ValueError):
        create_sas(256, 'AlicePublicKey', 'BobPublicKey')
    with pytest.raises(ValueError):
        create_sas(K, 'AlicePublicKey', 'BobPublicKey', pin_length=33)
    with pytest.raises(ValueError):
        create_sas(K, 'AlicePublicKey', 'BobPublicKey', pin_length=0)

def test_custom_sid_roles():
    s = create_sas(K, 'AlicePublicKey', 'BobPublicKey', sid=('pair', "7, 3"))
    try:
        assert s.initiator == 7
        assert s.parties[7].isinitiator
        assert not s.parties[3].isinitiator
        a, b = s.run()
        assert a == b
    finally:
        s.close()
