#!/usr/bin/env python

""" Background listener for unsolicited incoming SMS notifications """

import logging, threading, time, queue

from .exceptions import SmsHandlerException, TimeoutException, TransportError, ParseError
from .parser import parseCmtHeader, parseCmtiIndex, CMT_PREFIX, CMTI_PREFIX


class SmsListener(object):
    """ Watches the modem's serial stream for new message notifications

    Runs two threads: the listener thread polls the serial port for lines (yielding
    the stream to command transactions whenever one is pending) and parses +CMT/+CMTI
    notifications; the dispatch thread passes the resulting Sms objects, in order, to
    the callback function, so that a slow callback never delays polling.
    """

    log = logging.getLogger('smshandler.listener.SmsListener')

    # Command echoes and query responses that can leak through between transactions
    NOISE_LINES = ('AT', 'OK', 'ERROR')
    NOISE_PREFIXES = ('AT+', '+CMGF:', '+CSCS:', '+CPMS:', '+CNMI:', '+CSQ:')
    # Lines that end a +CMT message body
    BODY_END_PREFIXES = (CMT_PREFIX, CMTI_PREFIX, 'OK', 'ERROR', 'AT+')

    _STOP = object() # dispatch queue sentinel

    def __init__(self, handler, callback):
        """
        :param handler: SmsHandler instance that owns the serial port
        :param callback: function to call with each received Sms
        """
        self._handler = handler
        self.callback = callback
        self._queue = queue.Queue()
        self.rxThread = None
        self.dispatchThread = None

    def start(self):
        """ Starts the listener and dispatch threads """
        self.rxThread = threading.Thread(target=self._listenLoop, name='smshandler-listener')
        self.rxThread.daemon = True
        self.dispatchThread = threading.Thread(target=self._dispatchLoop, name='smshandler-dispatch')
        self.dispatchThread.daemon = True
        self.dispatchThread.start()
        self.rxThread.start()

    def stop(self):
        """ Waits for the listener thread to exit (the handler must already have left the running state),
        then stops the dispatch thread once all queued messages have been passed to the callback """
        current = threading.current_thread()
        if self.rxThread != None and self.rxThread is not current:
            self.rxThread.join()
        self._queue.put(self._STOP)
        if self.dispatchThread != None and self.dispatchThread is not current:
            self.dispatchThread.join()

    def _listenLoop(self):
        """ Listener thread main loop """
        handler = self._handler
        self.log.info('SMS listener started')
        while handler.listening:
            try:
                with handler.gate.polling():
                    if not handler.listening:
                        break
                    line = self._pollLine(handler.POLL_INTERVAL)
                    if line:
                        self._handleLine(line)
            except TransportError as e:
                handler._listenerFailed(e)
                break
            except Exception:
                self.log.exception('Error while handling modem notification')
        self.log.info('SMS listener stopped')

    def _pollLine(self, timeout):
        """ Reads a single line, waiting at most the specified time

        :return: the stripped line, or None if no complete line arrived in time
        """
        self._handler.setReadTimeout(timeout)
        try:
            return self._handler.reader.readLine().strip()
        except TimeoutException:
            return None

    def isNoise(self, line):
        """ :return: True if the line is a command echo or command response rather than a notification """
        return line in self.NOISE_LINES or line.startswith(self.NOISE_PREFIXES)

    def _handleLine(self, line):
        if self.isNoise(line):
            self.log.debug('Ignoring command response line: %s', line)
        elif line.startswith(CMT_PREFIX):
            self._handleCmt(line)
        elif line.startswith(CMTI_PREFIX):
            self._handleCmti(line)
        else:
            self.log.debug('Unhandled unsolicited modem notification: %s', line)

    def _handleCmt(self, header):
        """ Handler for directly delivered SMS messages: a +CMT header followed by the message body """
        try:
            sms = parseCmtHeader(header)
        except ParseError as e:
            self.log.debug('Ignoring +CMT notification: %s', e)
            return
        bodyLines = []
        nextLine = None
        deadline = time.time() + self._handler.CMT_BODY_TIMEOUT
        while True:
            remaining = deadline - time.time()
            if remaining <= 0:
                break
            line = self._pollLine(min(remaining, self._handler.POLL_INTERVAL))
            if line == None:
                continue
            if len(line) == 0:
                if len(bodyLines) > 0:
                    break
                continue
            if line.startswith(self.BODY_END_PREFIXES):
                nextLine = line
                break
            bodyLines.append(line)
        if len(bodyLines) > 0:
            sms.message = '\n'.join(bodyLines)
            self._deliver(sms)
        else:
            self.log.debug('Dropping +CMT notification without message body: %s', header)
        if nextLine != None:
            # The line that ended the body is handled in its own right
            self._handleLine(nextLine)

    def _handleCmti(self, line):
        """ Handler for "new SMS stored" notifications: reads the message from storage """
        try:
            index = parseCmtiIndex(line)
            sms = self._handler.readStoredSms(index)
        except SmsHandlerException as e:
            self.log.debug('Failed to read stored SMS for notification %r: %s', line, e)
            return
        self._deliver(sms)

    def _deliver(self, sms):
        self.log.debug('SMS received: %r', sms)
        self._queue.put(sms)

    def _dispatchLoop(self):
        """ Dispatch thread main loop """
        while True:
            sms = self._queue.get()
            if sms is self._STOP:
                break
            try:
                self.callback(sms)
            except Exception:
                self.log.exception('SMS received callback failed')
