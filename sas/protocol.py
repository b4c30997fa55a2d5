from ast import literal_eval
from enum import Enum
from sas.commitment import IdealCommitment
from sas.errors import ProtocolOrderError
from sas.itm import ITM
from sas import pin

class Phase(Enum):
    FRESH = 0
    COMMITTED = 1   # initiator: commitment sent
    RECEIVED = 2    # initiator: peer message and nonce in, responder: commitment in
    SENT = 3        # responder: message and nonce sent
    REVEALED = 4    # initiator: commitment opened for the peer
    OPENED = 5      # responder: peer commitment verified and readable
    CHECKED = 6

class SASProtocol(ITM):
    """ One party of the SAS pairing protocol. Both roles run this code; the
    sid names which pid is the initiator.

    The party talks to the environment on `z2p`/`p2z` and to the other party
    on `p2o`/`o2p`. It never holds a reference to the other party: whatever the
    peer sends is copied into the inbox fields `peer_msg`, `peer_nonce` and
    `peer_commitment` when it arrives.

    Inputs from Z:
        ('commit',)  initiator: commit to the nonce, send commitment and message
        ('send',)    responder: send message and nonce
        ('reveal',)  initiator: decommit, send the opened commitment
        ('check',)   both: compute the pin, output ('pin', pin) on p2z

    Attributes:
        phase (Phase): where this party is in the exchange
        nonce (bytes): the party's nonce, drawn once at construction
        msg (bytes): the message this party authenticates
        commitment (Commitment): initiator only, its own commitment
        pin (str): the computed pin once checked
    """
    def __init__(self, k, sid, pid, channels, pump, msg, scheme=IdealCommitment,
                 pin_length=pin.PIN_LENGTH, entropy=None):
        """
        Args:
            k (int): security parameter in bits, the AES block size (128)
            sid (tuple): (ssid, "initiator pid, responder pid")
            pid (int): this party's pid
            channels (dict from str to GenChannel): 'z2p', 'p2z', 'o2p', 'p2o'
            pump (GenChannel): channel to give control back to the environment
            msg (bytes or str): the value to authenticate, str is utf-8 encoded
            scheme (type): the commitment scheme the initiator commits with
            pin_length (int): digits in the pin
            entropy (callable): secure random source, see `ITM.sample`
        """
        if k != pin.NONCE_SIZE * 8:
            raise ValueError('security parameter must be {} bits, got {}'.format(pin.NONCE_SIZE * 8, k))
        if not 0 < pin_length <= pin.DIGEST_SIZE:
            raise ValueError('pin length must be between 1 and {}, got {}'.format(pin.DIGEST_SIZE, pin_length))
        self.handlers = {
            channels['z2p'] : self.env_msg,
            channels['o2p'] : self.peer_msg_in,
        }
        ITM.__init__(self, k, sid, pid, channels, self.handlers, pump, entropy)

        self.ssid, parties = sid
        parties = literal_eval(parties)
        self.initiator = parties[0]
        self.responder = parties[1]
        self.isinitiator = pid == self.initiator

        self.env_msgs = {}
        self.peer_msgs = {}
        self.env_msgs['check'] = self.check
        if self.isinitiator:
            self.env_msgs['commit'] = self.commit_to
            self.env_msgs['reveal'] = self.reveal
            self.peer_msgs['send'] = self.recv_send
        else:
            self.env_msgs['send'] = self.send_to
            self.peer_msgs['commit'] = self.recv_commit
            self.peer_msgs['open'] = self.recv_open

        self.scheme = scheme
        self.pin_length = pin_length
        self.msg = msg.encode('utf-8') if isinstance(msg, str) else bytes(msg)
        self.nonce = self.sample(self.k // 8)
        self.commitment = None

        self.peer_msg = None
        self.peer_nonce = None
        self.peer_commitment = None

        self.pin = None
        self.phase = Phase.FRESH

    @property
    def role(self):
        return 'initiator' if self.isinitiator else 'responder'

    def require(self, step, *phases):
        if self.phase not in phases:
            raise ProtocolOrderError(self.pid, step, self.phase)

    def advance(self, phase):
        self.log.debug('[%s] %s -> %s', self.pid, self.phase.name, phase.name)
        self.phase = phase

    #
    # Initiator
    #
    def commit_to(self):
        """INITIATOR: commit to the nonce and send the sealed commitment with
        the message. The peer cannot read the nonce yet.

        Msg:
            From Z: ('commit',)

        Sends:
            To peer: ('commit', sealed commitment, msg)
        """
        self.require('commit', Phase.FRESH)
        self.commitment = self.scheme.commit(self.nonce, self.entropy)
        self.advance(Phase.COMMITTED)
        self.write('p2o', ('commit', self.commitment.seal(), self.msg))

    def recv_send(self, msg, nonce):
        """INITIATOR: the responder's message and plaintext nonce arrive.

        Msg:
            From peer: ('send', msg, nonce)
        """
        self.require('receive', Phase.COMMITTED)
        self.peer_msg = msg
        self.peer_nonce = nonce
        self.advance(Phase.RECEIVED)
        self.pump.write('')

    def reveal(self):
        """INITIATOR: decommit and send the opened commitment, only once the
        responder's nonce is in.

        Msg:
            From Z: ('reveal',)

        Sends:
            To peer: ('open', opened commitment)
        """
        self.require('reveal', Phase.RECEIVED)
        self.commitment = self.commitment.decommit()
        self.advance(Phase.REVEALED)
        self.write('p2o', ('open', self.commitment))

    #
    # Responder
    #
    def recv_commit(self, sealed, msg):
        """RESPONDER: the initiator's sealed commitment and message arrive.

        Msg:
            From peer: ('commit', sealed commitment, msg)
        """
        self.require('receive', Phase.FRESH)
        self.peer_commitment = sealed
        self.peer_msg = msg
        self.advance(Phase.RECEIVED)
        self.pump.write('')

    def send_to(self):
        """RESPONDER: send the message and the nonce in the clear. Only after
        the initiator is bound to its nonce.

        Msg:
            From Z: ('send',)

        Sends:
            To peer: ('send', msg, nonce)
        """
        self.require('send', Phase.RECEIVED)
        self.advance(Phase.SENT)
        self.write('p2o', ('send', self.msg, self.nonce))

    def recv_open(self, opened):
        """RESPONDER: the decommit signal. The opening replaces the sealed
        copy after it is checked against it.

        Msg:
            From peer: ('open', opened commitment)
        """
        self.require('open', Phase.SENT)
        self.peer_commitment = self.peer_commitment.verify(opened)
        self.advance(Phase.OPENED)
        self.pump.write('')

    #
    # Both parties
    #
    def check(self):
        """Compute the pin. The responder reads the initiator's nonce through
        its copy of the commitment, which refuses until the reveal arrived.

        Msg:
            From Z: ('check',)

        Sends:
            To Z: ('pin', pin)
        """
        if self.isinitiator:
            self.require('check', Phase.REVEALED)
            self.pin = pin.initiator_pin(self.nonce, self.peer_nonce, self.msg, self.peer_msg, self.pin_length)
        else:
            self.require('check', Phase.RECEIVED, Phase.SENT, Phase.OPENED)
            peer_nonce = self.peer_commitment.open()
            self.peer_nonce = peer_nonce
            self.pin = pin.responder_pin(self.nonce, peer_nonce, self.msg, self.peer_msg, self.pin_length)
        self.advance(Phase.CHECKED)
        self.log.info('[%s] %s pin computed', self.pid, self.role)
        self.write('p2z', ('pin', self.pin))

    def env_msg(self, msg):
        """ Handlers for messages from Z. msg[0] is the type of the message
        and tees it off to the handler for that message type.

        Throws:
            ProtocolOrderError: if this role has no such step
        """
        if msg[0] in self.env_msgs:
            self.env_msgs[msg[0]](*msg[1:])
        else:
            raise ProtocolOrderError(self.pid, msg[0], self.phase)

    def peer_msg_in(self, msg):
        """ Handlers for messages from the other party, same dispatch as `env_msg`. """
        if msg[0] in self.peer_msgs:
            self.peer_msgs[msg[0]](*msg[1:])
        else:
            raise ProtocolOrderError(self.pid, 'receive ' + str(msg[0]), self.phase)
