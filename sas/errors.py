
class Error(Exception):
    pass

class ProtocolError(Error):
    """Raised when a run of the pairing protocol cannot continue. The run
    must be discarded and restarted with fresh nonces.
    """
    pass

class CommitmentProtected(ProtocolError):
    """Raised when a commitment is opened before the committer revealed it.

    Attributes:
        scheme -- name of the commitment scheme that refused the read.
    """
    def __init__(self, scheme='ideal'):
        ProtocolError.__init__(self, 'commitment is protected')
        self.scheme = scheme

class CommitmentMismatch(ProtocolError):
    """Raised when an opened commitment does not match the sealed copy
    received earlier.
    """
    def __init__(self, scheme):
        ProtocolError.__init__(self, '{} commitment does not match its opening'.format(scheme))
        self.scheme = scheme

class ProtocolOrderError(ProtocolError):
    """Raised when a party is asked to do a step in the wrong phase, or a
    step its role does not have.

    Attributes:
        pid -- the party that refused the step.
        step -- the name of the step.
        phase -- the phase the party was in.
    """
    def __init__(self, pid, step, phase):
        ProtocolError.__init__(self, 'party {} cannot {} in phase {}'.format(pid, step, phase.name))
        self.pid = pid
        self.step = step
        self.phase = phase

class EntropyError(Error):
    """Raised when the secure random source fails. Never retried."""
    def __init__(self, nbytes, reason):
        Error.__init__(self, 'could not draw {} secure random bytes: {}'.format(nbytes, reason))
        self.nbytes = nbytes

class ChannelFullError(Error):
    """Raised when a one-shot channel is written while still holding data."""
    def __init__(self, chan, data):
        Error.__init__(self, 'writing to channel {} already full with {}'.format(chan.id, data))
        self.chan = chan
