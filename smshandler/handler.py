#!/usr/bin/env python

""" High-level API class for sending and receiving SMS messages through an attached GSM modem """

import re, logging, time, threading

from .serial_comms import SerialComms
from .exceptions import SmsHandlerException, CommandError, CmeError, CmsError, InvalidStateException, TimeoutException
from .listener import SmsListener
from .parser import parseSmsList, parseStoredSms
from .sms import Sms
from .util import lineMatching


class SmsHandler(SerialComms):
    """ Main class for sending, reading and receiving SMS messages (text mode) """

    log = logging.getLogger('smshandler.handler.SmsHandler')

    # Listener lifecycle states
    LISTENER_NOT_STARTED = 0
    LISTENER_RUNNING = 1
    LISTENER_STOPPING = 2
    LISTENER_STOPPED = 3

    # Substrings that mark the final line of a command response
    TERMINAL_TOKENS = ('OK', 'ERROR', '+CME ERROR')
    # Used for parsing AT command errors
    CM_ERROR_REGEX = re.compile(r'\+(CM[ES]) ERROR:\s*(\d+)')
    # Used for parsing signal strength query responses
    CSQ_REGEX = r'^\+CSQ:\s*(\d+),'
    # Used for parsing the message reference of a sent SMS
    CMGS_REGEX = re.compile(r'\+CMGS:\s*(\d+)\s*[\r\n]')
    # Notification settings to try, in order of preference (modem firmware support varies)
    CNMI_SETTINGS = ('1,2,0,1,0', '2,1,0,2,0', '1,1,0,1,0')
    # Ctrl-Z: ends the message body when sending an SMS
    CTRL_Z = chr(26)

    # Maximum time (in seconds) to wait for a command's final response line
    COMMAND_TIMEOUT = 10
    # Consecutive blank lines after which a command response is considered complete
    MAX_EMPTY_LINES = 3
    # Listener read timeout (in seconds); also the longest a transaction waits for the listener to yield
    POLL_INTERVAL = 0.1
    # Maximum time (in seconds) to collect the message body following a +CMT header
    CMT_BODY_TIMEOUT = 2
    # Maximum time (in seconds) to wait for the "> " prompt after AT+CMGS
    PROMPT_TIMEOUT = 10
    # Maximum time (in seconds) to wait for the +CMGS result after sending the message body
    SEND_TIMEOUT = 30
    # Pause (in seconds) before AT+CMGS and before writing the message body
    SETTLE_DELAY = 0.1

    def __init__(self, port, baudrate=115200, fatalErrorCallbackFunc=None):
        super(SmsHandler, self).__init__(port, baudrate, fatalErrorCallbackFunc=fatalErrorCallbackFunc)
        self.notificationMode = None # The AT+CNMI setting accepted by the modem (set during connect())
        self._listener = None # smshandler.listener.SmsListener
        self._listenerState = self.LISTENER_NOT_STARTED
        self._stateLock = threading.Lock()

    def connect(self):
        """ Opens the port and initializes the modem for text mode SMS

        :raise TransportError: if the serial port could not be opened
        :raise CommandError: if the modem rejected an initialization command
        :raise TimeoutException: if the modem did not respond to an initialization command
        """
        self.log.info('Connecting to modem on port %s at %dbps', self.port, self.baudrate)
        super(SmsHandler, self).connect()
        try:
            self.execute('AT') # check that the modem responds
            self.execute('AT+CMGF=1') # text mode SMS
            self.execute('AT+CSCS="GSM"') # GSM character set
            self.execute('AT+CPMS="SM","SM","SM"') # store messages on the SIM card
            self._enableNotifications()
        except SmsHandlerException as e:
            self.log.error('Modem initialization failed: %s', e)
            super(SmsHandler, self).close()
            raise

    def _enableNotifications(self):
        """ Enables new message notifications, using the first setting the modem accepts """
        for setting in self.CNMI_SETTINGS:
            try:
                self.execute('AT+CNMI={0}'.format(setting))
            except (CommandError, TimeoutException) as e:
                self.log.warning('Modem did not accept AT+CNMI=%s: %s', setting, e)
                error = e
            else:
                self.notificationMode = setting
                return
        raise error

    def close(self):
        """ Stops the listener (if running), waits for it to exit, then closes the serial port

        Calling this more than once is harmless.
        """
        with self._stateLock:
            if self._listenerState == self.LISTENER_RUNNING:
                self._listenerState = self.LISTENER_STOPPING
            elif self._listenerState == self.LISTENER_NOT_STARTED:
                self._listenerState = self.LISTENER_STOPPED
        if self._listener != None:
            self._listener.stop()
            self._listener = None
        with self._stateLock:
            self._listenerState = self.LISTENER_STOPPED
        if self.alive:
            self.log.info('Closing modem on port %s', self.port)
        super(SmsHandler, self).close()

    def __enter__(self):
        return self

    def __exit__(self, excType, excValue, traceback):
        self.close()

    @property
    def listenerState(self):
        """ :return: The listener lifecycle state (one of the LISTENER_* constants) """
        return self._listenerState

    @property
    def listening(self):
        """ :return: True if the incoming SMS listener is running """
        return self._listenerState == self.LISTENER_RUNNING

    def execute(self, command, timeout=None, parseError=True):
        """ Executes an AT command and returns the modem's response.

        The listener (if running) is paused for the duration of the command. The
        command's echo and blank lines are not included in the response.

        :param command: The AT command to send (without line terminator)
        :type command: str
        :param timeout: Maximum time in seconds to wait for the final response line (defaults to COMMAND_TIMEOUT)
        :type timeout: int or float
        :param parseError: If True, a CommandError is raised if the modem responds with an error
        :type parseError: bool

        :raise CommandError: if the command returns an error (only if parseError parameter is True)
        :raise TimeoutException: if no final response line was received in time (partial response in "data")
        :raise TransportError: if the serial port failed
        :raise InvalidStateException: if the serial port is not open

        :return: The response lines, separated by newlines
        :rtype: str
        """
        if not self.alive:
            raise InvalidStateException('Serial port is not open')
        if timeout == None:
            timeout = self.COMMAND_TIMEOUT
        with self.gate.paused():
            discarded = self.reader.discardBuffered()
            if discarded > 0:
                self.log.debug('Discarded %d buffered bytes before command', discarded)
            self.writeRaw(command + '\r\n')
            responseLines = self._readResponse(command, timeout)
        response = '\n'.join(responseLines)
        self.log.debug('response: %r', response)
        if parseError and len(responseLines) > 0 and 'ERROR' in responseLines[-1]:
            self._raiseCommandError(command, responseLines[-1], response)
        return response

    def _readResponse(self, command, timeout):
        """ Reads response lines until a final response line, too many blank lines, or the timeout """
        deadline = time.time() + timeout
        lines = []
        emptyLines = 0
        while True:
            remaining = deadline - time.time()
            if remaining <= 0:
                raise TimeoutException('\n'.join(lines) if len(lines) > 0 else None)
            self.setReadTimeout(min(remaining, self.timeout))
            try:
                line = self.reader.readLine().strip()
            except TimeoutException:
                continue
            if line == command:
                continue # echo
            if len(line) == 0:
                emptyLines += 1
                if emptyLines > self.MAX_EMPTY_LINES:
                    self.log.debug('Too many blank lines in response to %s', command)
                    return lines
                continue
            emptyLines = 0
            lines.append(line)
            if self._isTerminalLine(line):
                return lines

    def _isTerminalLine(self, line):
        for token in self.TERMINAL_TOKENS:
            if token in line:
                return True
        return False

    def _raiseCommandError(self, command, statusText, response):
        cmErrorMatch = self.CM_ERROR_REGEX.search(statusText)
        if cmErrorMatch:
            errorType = cmErrorMatch.group(1)
            errorCode = int(cmErrorMatch.group(2))
            if errorType == 'CME':
                raise CmeError(command, errorCode, response=response)
            else: # CMS error
                raise CmsError(command, errorCode, response=response)
        raise CommandError(command, response)

    def sendSms(self, destination, text):
        """ Send an SMS text message

        :param destination: the recipient's phone number
        :type destination: str
        :param text: the message text
        :type text: str

        :raise CommandError: if the modem reported an error while sending the message
        :raise TimeoutException: if the modem did not prompt for, or confirm, the message in time
        :raise TransportError: if the serial port failed

        :return: The message reference number assigned by the network, or None if it was not read
        :rtype: int
        """
        if not self.alive:
            raise InvalidStateException('Serial port is not open')
        command = 'AT+CMGS="{0}"'.format(destination)
        with self.gate.paused():
            self.reader.discardBuffered()
            time.sleep(self.SETTLE_DELAY)
            self.writeRaw(command + '\r')
            self._waitForPrompt()
            time.sleep(self.SETTLE_DELAY)
            self.writeRaw(text + self.CTRL_Z)
            response = self._waitForSendResult(command)
        self.log.debug('SMS sent to %s: %r', destination, response)
        cmgsMatch = self.CMGS_REGEX.search(response)
        if cmgsMatch:
            return int(cmgsMatch.group(1))
        return None

    def _waitForPrompt(self):
        """ Reads single bytes until the modem's "> " message prompt arrives """
        self.setReadTimeout(self.POLL_INTERVAL)
        received = bytearray()
        deadline = time.time() + self.PROMPT_TIMEOUT
        while b'>' not in received:
            if time.time() >= deadline:
                raise TimeoutException(received.decode(self.encoding) if len(received) > 0 else None)
            received.extend(self.reader.read(1))

    def _waitForSendResult(self, command):
        """ Reads the modem's response to a message body until +CMGS (success) or an error appears """
        self.setReadTimeout(self.POLL_INTERVAL)
        received = bytearray()
        response = ''
        deadline = time.time() + self.SEND_TIMEOUT
        while time.time() < deadline:
            data = self.reader.read()
            if len(data) == 0:
                continue
            received.extend(data)
            response = received.decode(self.encoding)
            if '+CMGS:' in response:
                return response
            if 'ERROR' in response:
                self._raiseCommandError(command, response, response)
        raise TimeoutException(response if len(response) > 0 else None)

    def listStoredSms(self, unreadOnly=False):
        """ Returns SMS messages currently stored on the SIM card

        :param unreadOnly: If True, only return unread messages
        :type unreadOnly: bool

        :return: A list of Sms objects containing the messages read (malformed entries are skipped)
        :rtype: list
        """
        status = Sms.STATUS_RECEIVED_UNREAD if unreadOnly else Sms.STATUS_ALL
        return parseSmsList(self.execute('AT+CMGL="{0}"'.format(status)))

    def readStoredSms(self, index):
        """ Reads and returns the SMS message at the specified storage index

        :raise CommandError: if unable to read the stored message
        :raise ParseError: if the response did not contain a complete message

        :rtype: smshandler.sms.Sms
        """
        return parseStoredSms(self.execute('AT+CMGR={0}'.format(index)), index)

    def deleteStoredSms(self, index):
        """ Deletes the SMS message stored at the specified index

        :raise CommandError: if unable to delete the stored message
        """
        self.execute('AT+CMGD={0}'.format(index))

    def getModemInfo(self):
        """ :return: The modem's identification information (ATI response) """
        return self.execute('ATI')

    def getSignalStrength(self):
        """ :return: The raw signal quality response (AT+CSQ), e.g. "+CSQ: 18,99\\nOK" """
        return self.execute('AT+CSQ')

    @property
    def signalStrength(self):
        """ Checks the modem's cellular network signal strength

        :raise CommandError: if an error occurs

        :return: The network signal strength as an integer between 0 and 31, or -1 if it is unknown
        :rtype: int
        """
        response = self.getSignalStrength()
        csq = lineMatching(self.CSQ_REGEX, response.split('\n'))
        if csq:
            ss = int(csq.group(1))
            return ss if ss != 99 else -1
        else:
            raise CommandError('AT+CSQ', response)

    def listen(self, callback):
        """ Starts listening for incoming SMS messages in the background

        The callback is invoked (on a separate thread, in order of arrival) with an Sms
        object for every message delivered directly by the modem (+CMT) or stored
        on the SIM card (+CMTI).

        :param callback: function taking a single Sms argument
        :type callback: func

        :raise InvalidStateException: if the listener is already running, has been stopped, or the port is not open
        """
        with self._stateLock:
            if self._listenerState != self.LISTENER_NOT_STARTED:
                raise InvalidStateException('SMS listener has already been started')
            if not self.alive:
                raise InvalidStateException('Serial port is not open')
            self._listenerState = self.LISTENER_RUNNING
        self._listener = SmsListener(self, callback)
        self._listener.start()

    def _listenerFailed(self, error):
        """ Called by the listener thread if the serial port failed underneath it """
        with self._stateLock:
            wasRunning = self._listenerState == self.LISTENER_RUNNING
            if wasRunning:
                self._listenerState = self.LISTENER_STOPPED
        if wasRunning:
            self.log.error('Serial port failure; SMS listener stopped: %s', error)
            self.fatalErrorCallback(error)
