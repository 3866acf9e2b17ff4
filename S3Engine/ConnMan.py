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

import http.client as httplib
import ssl
import time

from logging import debug
from threading import Semaphore

from .BaseUtils import encode_to_s3
from .Exceptions import S3RequestError
from .Utils import convertHeaderTupleListToDict

__all__ = [ "ConnMan", "HttpResponse" ]


class http_connection(object):
    def __init__(self, id, hostname, port, use_ssl, cfg, context=None):
        self.ssl = use_ssl
        self.id = id
        self.counter = 0
        self.hostname = hostname
        self.port = port or None
        self.last_used_time = time.time()
        timeout = cfg.socket_timeout or None
        if use_ssl:
            self.c = httplib.HTTPSConnection(hostname, self.port, context=context,
                                             timeout=timeout)
            debug(u'HTTPSConnection(%s, %s)', self.hostname, self.port)
        else:
            self.c = httplib.HTTPConnection(hostname, self.port, timeout=timeout)
            debug(u'HTTPConnection(%s, %s)', self.hostname, self.port)


class HttpResponse(object):
    """
    Response of one request. The underlying connection goes back to the
    pool once the body has been read in full with read() or drain().
    """
    def __init__(self, conn_man, conn, response):
        self._conn_man = conn_man
        self._conn = conn
        self._response = response
        self.status = response.status
        self.reason = response.reason
        self.headers = convertHeaderTupleListToDict(response.getheaders())

    def read(self, size=None):
        try:
            if size is None:
                data = self._response.read()
            else:
                data = self._response.read(size)
        except (IOError, OSError, httplib.HTTPException) as e:
            self._close()
            raise S3RequestError("Error reading response: %s" % e)
        if size is None or not data:
            self._release()
        return data

    def drain(self):
        self.read()

    def _release(self):
        if self._conn is not None:
            conn, self._conn = self._conn, None
            if self._response.will_close:
                conn.c.close()
                return
            self._conn_man.put(conn)

    def _close(self):
        if self._conn is not None:
            self._conn.c.close()
            self._conn = None


class ConnMan(object):
    """
    Pool of http(s) connections, keyed by scheme, host and port.

    request(options, body) is the whole transport interface used by the
    client, anything else with the same method can replace it.
    """
    conn_max_counter = 800    ## AWS closes connection after some ~90 requests

    def __init__(self, cfg):
        self.cfg = cfg
        self.conn_pool_sem = Semaphore()
        self.conn_pool = {}
        self._context = None
        self._context_set = False

    def _ssl_context(self):
        if self._context_set:
            return self._context

        cafile = self.cfg.ca_certs_file or None
        debug(u"Using ca_certs_file %s", cafile)
        if self.cfg.check_ssl_certificate:
            context = ssl.create_default_context(cafile=cafile)
            if not self.cfg.check_ssl_hostname:
                context.check_hostname = False
                debug(u'Disabling SSL certificate hostname checking')
        else:
            debug(u'Disabling SSL certificate checking')
            context = ssl._create_unverified_context(cafile=cafile,
                                                     cert_reqs=ssl.CERT_NONE)
        self._context = context
        self._context_set = True
        return context

    def get(self, hostname, port, use_ssl):
        conn = None
        conn_id = "http%s://%s:%s" % (use_ssl and "s" or "", hostname, port or "")
        with self.conn_pool_sem:
            if conn_id not in self.conn_pool:
                self.conn_pool[conn_id] = []
            while self.conn_pool[conn_id]:
                conn = self.conn_pool[conn_id].pop()
                if time.time() - conn.last_used_time < self.cfg.connection_max_age:
                    debug("ConnMan.get(): re-using connection: %s#%d" % (conn.id, conn.counter))
                    break
                debug("ConnMan.get(): closing expired connection")
                conn.c.close()
                conn = None
        if not conn:
            debug("ConnMan.get(): creating new connection: %s" % conn_id)
            context = use_ssl and self._ssl_context() or None
            conn = http_connection(conn_id, hostname, port, use_ssl, self.cfg, context)
        conn.counter += 1
        return conn

    def put(self, conn):
        if not self.cfg.connection_pooling:
            conn.c.close()
            debug("ConnMan.put(): closing connection (pooling disabled)")
            return

        if conn.counter >= ConnMan.conn_max_counter:
            conn.c.close()
            debug("ConnMan.put(): closing over-used connection")
            return

        conn.last_used_time = time.time()
        with self.conn_pool_sem:
            self.conn_pool[conn.id].append(conn)
        debug("ConnMan.put(): connection put back to pool (%s#%d)" % (conn.id, conn.counter))

    def close_all(self):
        with self.conn_pool_sem:
            for conns in self.conn_pool.values():
                for conn in conns:
                    conn.c.close()
            self.conn_pool = {}

    def request(self, options, body=None):
        """
        Send one request described by 'options' (method, protocol, host,
        port, path and headers) and return its HttpResponse.

        A pooled connection closed by the server while idle is replaced
        once when the body can be sent again.
        """
        use_ssl = options['protocol'] == 'https'
        if isinstance(body, str):
            body = encode_to_s3(body)
        start_pos = None
        if body is not None and hasattr(body, 'seek') and hasattr(body, 'tell'):
            start_pos = body.tell()

        conn = self.get(options['host'], options.get('port'), use_ssl)
        try:
            return self._send(conn, options, body)
        except (httplib.RemoteDisconnected, ConnectionResetError, BrokenPipeError) as e:
            if conn.counter <= 1 or (body is not None and not isinstance(body, bytes)
                                     and start_pos is None):
                raise S3RequestError("Request failed for: %s (%s)" % (options['path'], e))
            debug("ConnMan.request(): stale pooled connection, retrying once: %s" % e)
            if start_pos is not None:
                body.seek(start_pos)
        conn = self.get(options['host'], options.get('port'), use_ssl)
        try:
            return self._send(conn, options, body)
        except (httplib.RemoteDisconnected, ConnectionResetError, BrokenPipeError) as e:
            raise S3RequestError("Request failed for: %s (%s)" % (options['path'], e))

    def _send(self, conn, options, body):
        try:
            conn.c.request(options['method'], options['path'], body, options['headers'])
            response = conn.c.getresponse()
        except (httplib.RemoteDisconnected, ConnectionResetError, BrokenPipeError):
            conn.c.close()
            raise
        except (IOError, OSError, httplib.HTTPException) as e:
            conn.c.close()
            raise S3RequestError("Request failed for: %s (%s)" % (options['path'], e))
        return HttpResponse(self, conn, response)

# vim:et:ts=4:sts=4:ai
