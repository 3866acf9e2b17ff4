# -*- coding: utf-8 -*-

## --------------------------------------------------------------------
## Amazon S3 manager
##
## Authors   : Michal Ludvig <michal@logix.cz> (https://www.logix.cz/michal)
##             Florent Viard <florent@sodria.com> (https://www.sodria.com)
## Copyright : TGRMN Software, Sodria SAS and contributors
## License   : GPL Version 2
## Website   : https://s3tools.org
## --------------------------------------------------------------------

from logging import debug
from queue import Queue, Empty, Full
from threading import Thread, Event

from .BaseUtils import encode_to_s3
from .Exceptions import S3UploadError

__all__ = [ 'Chunker' ]


class Chunker(object):
    """
    Reads a stream in 'chunk_size' pieces on its own thread.

    Chunks are handed over through a queue holding a single chunk, so the
    reader is never more than one chunk ahead of the consumer. An empty
    stream still gives one empty chunk. A read error is re-raised to the
    consumer, and stop() makes the reader quit at its next step.
    """
    poll_interval = 0.2
    stop_timeout = 1.0

    def __init__(self, stream, chunk_size):
        self.stream = stream
        self.chunk_size = chunk_size
        self.q_out = Queue(maxsize = 1)
        self.ev_quit = Event()
        self.thread = None

    def start(self):
        self.thread = Thread(target = self.chunker, name = "Chunker")
        self.thread.daemon = True
        self.thread.start()
        return self

    def stop(self):
        self.ev_quit.set()
        if self.thread is None:
            return
        ## The reader may be stuck in read() on an idle pipe
        self.thread.join(self.stop_timeout)
        if self.thread.is_alive():
            debug("Chunker: reader still blocked after %.1fs, leaving it" % self.stop_timeout)

    def read_chunk(self):
        # Streams like pipes and sockets may return less than asked for
        buffers = []
        size_left = self.chunk_size
        while size_left > 0 and not self.ev_quit.is_set():
            data = self.stream.read(size_left)
            if not data:
                break
            data = encode_to_s3(data)
            buffers.append(data)
            size_left -= len(data)
        return b"".join(buffers)

    def _put(self, item):
        while not self.ev_quit.is_set():
            try:
                self.q_out.put(item, timeout = self.poll_interval)
                return True
            except Full:
                continue
        return False

    def chunker(self):
        seq = 0
        try:
            while not self.ev_quit.is_set():
                chunk = self.read_chunk()
                if not chunk and seq > 0:
                    break
                seq += 1
                if not self._put(('chunk', chunk)):
                    return
                if len(chunk) < self.chunk_size:
                    break
            debug("Chunker: %d chunks read" % seq)
            self._put(('end', None))
        except Exception as e:
            debug("Chunker: read failed after %d chunks: %s" % (seq, e))
            self._put(('error', e))

    def __iter__(self):
        while True:
            try:
                kind, value = self.q_out.get(timeout = self.poll_interval)
            except Empty:
                if self.thread is None or not self.thread.is_alive():
                    # The thread may have queued its last item before exiting
                    if self.q_out.empty():
                        raise S3UploadError("Chunker stopped unexpectedly")
                continue
            if kind == 'chunk':
                yield value
            elif kind == 'error':
                raise value
            else:
                return

# vim:et:ts=4:sts=4:ai
