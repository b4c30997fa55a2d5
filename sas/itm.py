from sas.errors import ChannelFullError, ProtocolError
from sas.utils import secure_random
from gevent.event import Event
import gevent
import logging

class GenChannel(Event):
    """
    One-shot channel between two machines, built on a gevent Event so a
    reader can block on it with `gevent.wait`. It holds a single message
    until the reader resets it.
    """
    def __init__(self, i=''):
        """
        Args:
            i (str): name of the channel, used in errors and logs
        """
        Event.__init__(self)
        self._data = None
        self.id = i

    def write(self, data):
        """
        Put `data` on the channel and wake the reader.

        Throws:
            ChannelFullError: if the previous message is still unread
        """
        if self.is_set():
            raise ChannelFullError(self, self._data)
        self._data = data
        self.set()

    def read(self):
        return self._data

    def reset(self):
        self.clear()


class ITM:
    """
    A machine that sleeps on its input channels and runs the handler of
    whichever one is written. Outputs go back over named channels.
    """
    def __init__(self, k, sid, pid, channels, handlers, pump, entropy=None):
        """
        Args:
            k (int): the security parameter in bits
            sid (tuple): the session id of this machine
            pid (int): the process id of this ITM
            channels (dict from str to GenChannel): the machine's channels by name,
                e.g. {'z2p': GenChannel, 'p2z': GenChannel, ...}
            handlers (dict from GenChannel to function): input channel -> handler
            pump (GenChannel): written to hand control back to the environment
            entropy (callable): secure random source, `get_random_bytes` by default
        """
        self.k = k
        self.sid = sid
        self.pid = pid
        self.pump = pump
        self.channels = channels
        self.handlers = handlers
        self.entropy = entropy

        self.log = logging.getLogger(type(self).__name__)

    def write(self, ch, msg):
        """ Write `msg` on the channel named `ch`. """
        self.channels[ch].write(msg)

    def sample(self, n):
        """ Draw `n` bytes from the secure random source. There is no fallback:
        a failing or short source is fatal.

        Throws:
            EntropyError: if the source raised or returned the wrong length
        """
        return secure_random(n, self.entropy)

    def fail(self, err):
        """ Report `err` back to the environment as ('error', err) on `p2z`. """
        self.write('p2z', ('error', err))

    def run(self):
        """ Serve input channels until killed. Run with `gevent.spawn(machine.run)`.

        A `ProtocolError` from a handler is reported and the loop goes on, the
        run's state is untouched. Anything else is reported and the machine
        stops: it is in an unknown state and takes no further input.
        """
        while True:
            ready = gevent.wait(
                objects=list(self.handlers.keys()),
                count=1
            )

            assert len(ready) == 1
            r = ready[0]
            msg = r.read()
            r.reset()

            try:
                self.handlers[r](msg)
            except ProtocolError as e:
                self.log.warning('[%s] %s', self.pid, e)
                self.fail(e)
            except Exception as e:
                self.log.error('[%s] stopped on %r', self.pid, e)
                self.fail(e)
                return
