from sas.errors import (
    Error,
    ProtocolError,
    CommitmentProtected,
    CommitmentMismatch,
    ProtocolOrderError,
    EntropyError,
    ChannelFullError,
)
from sas.commitment import Commitment, IdealCommitment, HashCommitment, commit, open_commitment, decommit
from sas.pin import retrieve_pin, initiator_pin, responder_pin, pins_match, PIN_LENGTH, NONCE_SIZE
from sas.itm import GenChannel, ITM
from sas.protocol import SASProtocol, Phase
from sas.execsas import create_sas, run_sas, SASSession

__all__ = [
    'Error', 'ProtocolError', 'CommitmentProtected', 'CommitmentMismatch',
    'ProtocolOrderError', 'EntropyError', 'ChannelFullError',
    'Commitment', 'IdealCommitment', 'HashCommitment', 'commit', 'open_commitment', 'decommit',
    'retrieve_pin', 'initiator_pin', 'responder_pin', 'pins_match', 'PIN_LENGTH', 'NONCE_SIZE',
    'GenChannel', 'ITM', 'SASProtocol', 'Phase',
    'create_sas', 'run_sas', 'SASSession',
]
