""" Fake serial package and modem profiles used by the smshandler test suite """

import threading, time
from copy import copy

# The fake modem to use (if any)
FAKE_MODEM = None
# Write callback to use during Serial.__init__() - usually None, but useful for checking writes during connect()
SERIAL_WRITE_CALLBACK_FUNC = None

CTRL_Z = chr(26)


class MockSerialPackage(object):
    """ Fake serial package for the SerialComms/SmsHandler classes to import during tests """

    class Serial(object):
        """ Mock serial object: bytes "received" from the fake modem are buffered until read """

        def __init__(self, port=None, baudrate=9600, timeout=None, *args, **kwargs):
            self.port = port
            self.baudrate = baudrate
            self.timeout = timeout
            self.is_open = True
            self.written = []
            self._readBuffer = bytearray()
            self._condition = threading.Condition()
            self.writeCallbackFunc = SERIAL_WRITE_CALLBACK_FUNC
            # Pre-determined responses to specific commands - used for imitating specific modems
            if FAKE_MODEM != None:
                self.modem = copy(FAKE_MODEM)
            else:
                self.modem = GenericTestModem()

        def _checkOpen(self):
            if not self.is_open:
                raise MockSerialPackage.SerialException('Attempting to use a port that is not open')

        @property
        def in_waiting(self):
            with self._condition:
                if not self.is_open:
                    # pyserial does not check is_open here: the ioctl on the closed file descriptor fails
                    raise TypeError('argument must be an int, or have a fileno() method.')
                return len(self._readBuffer)

        def read(self, size=1):
            with self._condition:
                self._checkOpen()
                if len(self._readBuffer) == 0 and self.timeout != 0:
                    self._condition.wait_for(lambda: len(self._readBuffer) > 0 or not self.is_open, timeout=self.timeout)
                self._checkOpen()
                data = bytes(self._readBuffer[:size])
                del self._readBuffer[:size]
                return data

        def write(self, data):
            self._checkOpen()
            if self.writeCallbackFunc != None:
                self.writeCallbackFunc(data)
            self.written.append(data)
            self.simulateIncoming(*self.modem.getResponse(data.decode('latin-1')))
            return len(data)

        def close(self):
            with self._condition:
                self.is_open = False
                self._condition.notify_all()

        def simulateIncoming(self, *sequence):
            """ Makes the specified strings available for reading; numbers in the sequence are delays (in seconds) """
            sequence = list(sequence)
            for i, item in enumerate(sequence):
                if type(item) in (int, float):
                    # Deliver the rest of the sequence in the background, after the delay
                    remaining = sequence[i:]
                    threading.Thread(target=self._delayedIncoming, args=(remaining,)).start()
                    return
                self._feed(item)

        def _delayedIncoming(self, sequence):
            for item in sequence:
                if type(item) in (int, float):
                    time.sleep(item)
                elif self.is_open:
                    self._feed(item)

        def _feed(self, text):
            with self._condition:
                self._readBuffer.extend(text.encode('latin-1'))
                self._condition.notify_all()

        def getWrittenData(self):
            return b''.join(self.written).decode('latin-1')


    class SerialException(Exception):
        """ Mock Serial Exception """


class FakeModem(object):
    """ Base fake modem: answers written commands from a table of responses """

    def __init__(self):
        # Command as written (including terminator) -> sequence of strings/delays to "send" back
        self.responses = {}
        self.defaultResponse = ['\r\nOK\r\n']
        # Response to AT+CMGS="<number>"
        self.cmgsPromptResponse = ['\r\n> ']
        # Response to the message body (ended with Ctrl-Z)
        self.smsSendResponse = ['\r\n+CMGS: 1\r\n', '\r\nOK\r\n']
        # Whether commands are echoed back before the response
        self.echo = False

    def getResponse(self, cmd):
        if cmd in self.responses:
            response = list(self.responses[cmd])
        elif cmd.startswith('AT+CMGS='):
            response = list(self.cmgsPromptResponse)
        elif cmd.endswith(CTRL_Z):
            response = list(self.smsSendResponse)
        elif cmd.endswith('\r\n'):
            response = list(self.defaultResponse)
        else:
            response = []
        if self.echo:
            response.insert(0, cmd)
        return response


class GenericTestModem(FakeModem):
    """ Not based on a real modem - simply used for general tests """

    def __init__(self):
        super(GenericTestModem, self).__init__()
        self.responses = {'ATI\r\n': ['\r\nManufacturer: Fake Modems Inc\r\n', 'Model: FM-1\r\n', 'Revision: 1.0\r\n', '\r\nOK\r\n'],
                          'AT+CSQ\r\n': ['\r\n+CSQ: 18,99\r\n', '\r\nOK\r\n']}


class SimcomSim7600(FakeModem):
    """ SIMCOM SIM7600 family: echo on, and only accepts the second AT+CNMI setting """

    def __init__(self):
        super(SimcomSim7600, self).__init__()
        self.echo = True
        self.responses = {'ATI\r\n': ['\r\nManufacturer: SIMCOM INCORPORATED\r\n', 'Model: SIMCOM_SIM7600G-H\r\n', 'Revision: LE20B04SIM7600G22\r\n', '\r\nOK\r\n'],
                          'AT+CNMI=1,2,0,1,0\r\n': ['\r\n+CME ERROR: 4\r\n']}
