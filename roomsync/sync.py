# vim: ts=4 et sw=4 sts=4 :

import copy
import http.client
import logging
import pprint
import threading

# 3rd party
import requests

# roomsync
import roomsync.types


class SyncSession:
    """Long-polls the Matrix client-server /sync endpoint via https:// and
    hands the responses to a Connection.

    Each response carries a `next_batch` token that is passed as `since`
    parameter in the following request, so the server only reports what
    changed in between.
    """

    SYNC_ENDPOINT = "_matrix/client/v3/sync"

    # constant used to censor the access token from logs
    _CENSORED = "<CENSORED>"

    def __init__(self, server_uri, access_token, connection, timeout_ms=30000, sync_filter=None):
        """
        :param str server_uri: The base URI of the homeserver including
                               protocol scheme, like https://matrix.org.
        :param str access_token: The token to authenticate with.
        :param connection: The Connection to hand sync responses to.
        :param int timeout_ms: How long the server may hold a request open
                               waiting for new data.
        :param str sync_filter: optional filter ID or JSON filter string.
        """
        self.m_server_uri = server_uri.rstrip('/')
        self.m_access_token = access_token
        self.m_connection = connection
        self.m_timeout_ms = timeout_ms
        self.m_filter = sync_filter
        self.m_logger = logging.getLogger("sync")

        self._reset()

    def _reset(self):
        """Resets all session state."""
        self.m_session = requests.Session()
        self.m_next_batch = None
        # thread running the sync loop
        self.m_thread = None
        self.m_stop_event = threading.Event()
        self.m_error_cb = None

    def _buildURL(self):
        return '/'.join((self.m_server_uri, self.SYNC_ENDPOINT))

    def _getHeaders(self):
        return {"Authorization": "Bearer {}".format(self.m_access_token)}

    def _getParams(self):
        params = {"timeout": self.m_timeout_ms}
        if self.m_next_batch:
            params["since"] = self.m_next_batch
        if self.m_filter:
            params["filter"] = self.m_filter
        return params

    def _getStatusString(self, http_status_code):
        """Returns a human readable string for the given numerical http status code."""
        try:
            return http.client.responses[http_status_code]
        except KeyError:
            return "unknown"

    def _raiseOnBadStatus(self, resp):
        if resp.status_code == http.client.OK:
            return

        try:
            details = resp.json()
        except ValueError:
            details = {}

        text = "Bad http status {} ({})".format(
            str(resp.status_code), self._getStatusString(resp.status_code)
        )

        if resp.status_code == http.client.TOO_MANY_REQUESTS:
            self.m_logger.warning("Too many requests on sync API")
            raise roomsync.types.TooManyRequests(resp.status_code, details, text)

        raise roomsync.types.MatrixError(resp.status_code, details, text)

    def _shouldDebug(self):
        # avoid performing expensive copying/formatting for each transfer when
        # logging is not active
        return self.m_logger.isEnabledFor(logging.DEBUG)

    def _debugRequest(self, url, headers, params):
        if not self._shouldDebug():
            return

        headers = copy.deepcopy(headers)
        if 'Authorization' in headers:
            # don't output access tokens
            headers['Authorization'] = self._CENSORED
        entries = ['='.join((key, val)) for key, val in headers.items()]

        self.m_logger.debug("-> Request GET {} with headers {}\nwith params: {}".format(
            url, ', '.join(entries), pprint.pformat(params))
        )

    def _debugResult(self, payload):
        if not self._shouldDebug():
            return

        self.m_logger.debug("<- Reply {}".format(pprint.pformat(payload)))

    def getNextBatch(self):
        return self.m_next_batch

    def setErrorCallback(self, callback):
        """Sets a function that will be called without parameters if the sync
        loop terminates due to an error."""
        self.m_error_cb = callback

    def syncOnce(self):
        """Performs a single sync request and publishes its result via the
        connection.

        :return dict: The decoded sync response.
        """
        url = self._buildURL()
        headers = self._getHeaders()
        params = self._getParams()

        self._debugRequest(url, headers, params)

        # allow the server side long-polling some slack before giving up
        resp = self.m_session.get(
            url,
            headers=headers,
            params=params,
            timeout=self.m_timeout_ms / 1000.0 + 30
        )

        self._raiseOnBadStatus(resp)
        payload = resp.json()
        self._debugResult(payload)

        next_batch = self.m_connection.handleSync(payload)
        if next_batch:
            self.m_next_batch = next_batch

        return payload

    def _syncLoop(self):
        while not self.m_stop_event.is_set():
            try:
                self.syncOnce()
            except Exception as e:
                if self.m_stop_event.is_set():
                    break
                from roomsync.utils import getExceptionContext
                self.m_logger.error("Sync loop failed: {}".format(getExceptionContext(e)))
                if self.m_error_cb:
                    self.m_error_cb()
                break

    def isRunning(self):
        return self.m_thread is not None and self.m_thread.is_alive()

    def start(self):
        """Runs the sync loop in a background thread."""

        if self.m_thread:
            raise Exception("Sync session is already started")

        self.m_stop_event.clear()
        self.m_thread = threading.Thread(target=self._syncLoop, daemon=True)
        self.m_thread.start()

    def stop(self):
        """Stops the sync loop and waits for the background thread to exit.

        A sync request currently in progress is waited for.
        """
        self.m_logger.debug("Stopping sync session")

        self.m_stop_event.set()
        self.m_session.close()

        if self.m_thread:
            self.m_thread.join()
            self.m_thread = None
