from sas.commitment import IdealCommitment
from sas.itm import GenChannel
from sas.pin import NONCE_SIZE, PIN_LENGTH
from sas.protocol import SASProtocol
from sas.errors import ProtocolError
from sas.utils import read_one, wait_for
from ast import literal_eval
import gevent
import logging

log = logging.getLogger(__name__)

K = NONCE_SIZE * 8
DEFAULT_SID = ('sas', "1, 2")

def create_sas(k, initiator_msg, responder_msg, scheme=IdealCommitment, pin_length=PIN_LENGTH,
               sid=DEFAULT_SID, entropy=None, prot=SASProtocol):
    """Sets up the two parties of one pairing run, wires their channels to each
    other and to the environment, and spawns them.

    Args:
        k: the security parameter in bits
        initiator_msg: the value the initiator authenticates
        responder_msg: the value the responder authenticates
        scheme: the commitment scheme, `IdealCommitment` or `HashCommitment`
        pin_length: digits in the pin
        sid: the session id, (ssid, "initiator pid, responder pid")
        entropy: secure random source handed to both parties
        prot: the party code, follows SASProtocol

    Throws:
        EntropyError: if a nonce cannot be drawn. The run never starts.

    Returns:
        SASSession: the environment's handle on the run
    """
    initiator, responder = literal_eval(sid[1])

    i2r, r2i = GenChannel('i2r'), GenChannel('r2i')
    pump = GenChannel('pump')

    channels = {
        initiator: {'z2p': GenChannel('z2p-{}'.format(initiator)), 'p2z': GenChannel('p2z-{}'.format(initiator)),
                    'p2o': i2r, 'o2p': r2i},
        responder: {'z2p': GenChannel('z2p-{}'.format(responder)), 'p2z': GenChannel('p2z-{}'.format(responder)),
                    'p2o': r2i, 'o2p': i2r},
    }

    parties = {
        initiator: prot(k, sid, initiator, channels[initiator], pump, initiator_msg,
                        scheme=scheme, pin_length=pin_length, entropy=entropy),
        responder: prot(k, sid, responder, channels[responder], pump, responder_msg,
                        scheme=scheme, pin_length=pin_length, entropy=entropy),
    }
    greenlets = [gevent.spawn(p.run) for p in parties.values()]
    log.debug('session %s: initiator %s, responder %s, %s commitment', sid[0], initiator, responder, scheme.scheme)
    return SASSession(sid, initiator, responder, parties, channels, pump, greenlets)


class SASSession:
    """ The environment of one pairing run. It gives each party its inputs in
    order and waits for control to come back before the next one: on the pump
    after a delivery, or on a party's p2z for a pin or an error.

    Attributes:
        parties (dict from pid to SASProtocol): both parties, for inspection
    """
    def __init__(self, sid, initiator, responder, parties, channels, pump, greenlets):
        self.sid = sid
        self.initiator = initiator
        self.responder = responder
        self.parties = parties
        self.channels = channels
        self.pump = pump
        self.greenlets = greenlets
        self.failed = None
        self.log = logging.getLogger(type(self).__name__)

    def _input(self, pid, msg):
        self.log.debug('z2p %s: %s', pid, msg)
        self.channels[pid]['z2p'].write(msg)

    def _raise(self, m):
        if isinstance(m, tuple) and m and m[0] == 'error':
            if not isinstance(m[1], ProtocolError):
                self.failed = m[1]
            raise m[1]
        return m

    def _await(self, *chans):
        _, m = read_one(*chans)
        return self._raise(m)

    def step(self, pid, msg):
        """ Give party `pid` the input `msg` and wait until control returns.

        Throws:
            ProtocolError: whatever either party reported for this step
            Exception: a failure that stopped a party, here and on every later step

        Returns:
            what came back: '' from the pump, or a party's output tuple
        """
        if self.failed is not None:
            raise self.failed
        self._input(pid, msg)
        return self._await(self.pump, *[c['p2z'] for c in self.channels.values()])

    def commit_to(self):
        self.step(self.initiator, ('commit',))

    def send_to(self):
        self.step(self.responder, ('send',))

    def reveal(self):
        self.step(self.initiator, ('reveal',))

    def check(self, pid):
        _, p = self.step(pid, ('check',))
        return p

    def check_both(self):
        """ Both parties compute their pin at the same time. Only valid once all
        four deliveries are done. Both outputs are read before an error from
        either is raised, so the session stays in step.

        Returns:
            (initiator pin, responder pin)
        """
        if self.failed is not None:
            raise self.failed
        pids = (self.initiator, self.responder)
        for pid in pids:
            self._input(pid, ('check',))
        outs = [wait_for(self.channels[pid]['p2z']) for pid in pids]
        return tuple(self._raise(m)[1] for m in outs)

    def run(self):
        """ The four deliveries in order, then both checks.

        Returns:
            (initiator pin, responder pin)
        """
        self.commit_to()
        self.send_to()
        self.reveal()
        return self.check(self.initiator), self.check(self.responder)

    def close(self):
        gevent.killall(self.greenlets)


def run_sas(initiator_msg, responder_msg, scheme=IdealCommitment, pin_length=PIN_LENGTH, k=K, entropy=None):
    """ Run one complete pairing with fresh nonces.

    Returns:
        (initiator pin, responder pin)
    """
    session = create_sas(k, initiator_msg, responder_msg, scheme=scheme, pin_length=pin_length, entropy=entropy)
    try:
        return session.run()
    finally:
        session.close()
