import weakref
from collections import deque
from datetime import datetime
from typing import Callable, Optional


class ChannelLogger:
    """Fallback reporting for problems inside the channel system itself."""

    def __init__(self, name: str):
        self.name = name

    def warning(self, message: str):
        print(f"[{self.name}] warning: {message}")


logger = ChannelLogger(__name__)

_channels = {}


def channel(name: str, buffer_size: int = 0, timestamp: bool = False) -> "Channel":
    """
    Returns the process wide channel of the given name, creating it if needed.

    @param name: channel name, e.g. "offset" or "boolean"
    @param buffer_size: buffer size used if the channel is created
    @param timestamp: timestamp setting used if the channel is created
    @return: Channel
    """
    try:
        return _channels[name]
    except KeyError:
        chan = Channel(name, buffer_size=buffer_size, timestamp=timestamp)
        _channels[name] = chan
        return chan


class _StrongRef:
    """Holds a watcher strongly, dereferenced by calling it like a weakref.ref."""

    __slots__ = ("watcher",)

    def __init__(self, watcher):
        self.watcher = watcher

    def __call__(self):
        return self.watcher


class Channel:
    """
    Observer pattern implementation for diagnostic messages.

    The offset and boolean engines report decisions (pruned slices, unclosed chains,
    trivial containment results) on named channels. Nothing is formatted or sent unless
    a watcher is registered or the channel buffers, code emitting expensive messages
    guards with `if channel:`.

    Usage:
        chan = channel("offset")
        chan.watch(print)
        chan("pruned %d slices", 3)
        chan.unwatch(print)
    """

    def __init__(
        self,
        name: str,
        buffer_size: int = 0,
        line_end: Optional[str] = None,
        timestamp: bool = False,
    ):
        self.name = name
        self.line_end = line_end
        self.timestamp = timestamp
        # Weak or strong references, both return the watcher when called.
        self.watchers = []
        self.buffer_size = 0
        self.buffer = None
        self.resize_buffer(buffer_size)

    def __repr__(self):
        return f"Channel({self.name!r}, buffer_size={self.buffer_size}, line_end={self.line_end!r})"

    def __bool__(self):
        return bool(self.watchers) or self.buffer is not None

    def __call__(self, message: str, *args, indent: bool = False):
        message = self._format(message, args, indent)
        for ref in list(self.watchers):
            self._deliver(ref, message)
        if self.buffer is not None:
            self.buffer.append(message)

    def _format(self, message, args, indent):
        if args:
            message = message % args
        if self.line_end is not None:
            message += self.line_end
        if indent:
            message = "    " + message.replace("\n", "\n    ")
        if self.timestamp:
            stamp = datetime.now().strftime("[%H:%M:%S] ")
            message = stamp + message.replace("\n", "\n" + stamp)
        return message

    def _find(self, monitor_function):
        for ref in self.watchers:
            if ref() is monitor_function:
                return ref
        return None

    def watch(self, monitor_function: Callable, weak: bool = False):
        """
        Send the messages of this channel to monitor_function, buffered messages are
        replayed to it first. A weak watcher is dropped once it is garbage collected.
        """
        if self._find(monitor_function) is not None:
            return
        ref = None
        if weak:
            try:
                ref = weakref.ref(monitor_function, self._drop_ref)
            except TypeError:
                logger.warning(
                    f"{monitor_function!r} cannot be weakly referenced, watching it strongly"
                )
        if ref is None:
            ref = _StrongRef(monitor_function)
        self.watchers.append(ref)
        if self.buffer is not None:
            for line in list(self.buffer):
                monitor_function(line)

    def unwatch(self, monitor_function: Callable):
        ref = self._find(monitor_function)
        if ref is None:
            logger.warning(f"{monitor_function!r} is not watching channel '{self.name}'")
            return
        self.watchers.remove(ref)

    def resize_buffer(self, new_size: int):
        """Keep the last new_size messages, 0 turns buffering off."""
        self.buffer_size = new_size
        if new_size == 0:
            self.buffer = None
        else:
            self.buffer = deque(self.buffer or (), maxlen=new_size)

    def _deliver(self, ref, message):
        watcher = ref()
        if watcher is None:
            self._drop_ref(ref)
            return
        try:
            watcher(message)
        except Exception as e:
            # A broken watcher must not break the geometry call that emitted the message.
            logger.warning(
                f"watcher of channel '{self.name}' failed: {type(e).__name__}: {e}"
            )

    def _drop_ref(self, ref):
        for i, existing in enumerate(self.watchers):
            if existing is ref:
                del self.watchers[i]
                return
