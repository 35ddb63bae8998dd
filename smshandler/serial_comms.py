#!/usr/bin/env python

""" Low-level serial communications handling """

import threading, logging
from contextlib import contextmanager

import serial # pyserial: http://pyserial.sourceforge.net

from .exceptions import TimeoutException, TransportError


class LineReader(object):
    """ Buffered reader on top of the serial port

    Reads are bounded by the port's read timeout. When a read times out before the
    requested delimiter arrives, a TimeoutException is raised and the partial data
    stays buffered, so that the next read continues where this one left off.
    """

    def __init__(self, port, encoding='latin-1'):
        self.port = port
        self.encoding = encoding
        self._buffer = bytearray()

    def buffered(self):
        """ :return: The number of bytes read from the port but not yet consumed """
        return len(self._buffer)

    def discardBuffered(self):
        """ Drops all buffered (unconsumed) bytes

        :return: The number of bytes discarded
        """
        count = len(self._buffer)
        del self._buffer[:]
        return count

    def _fill(self):
        """ Reads whatever the port has waiting (at least one byte, or nothing on timeout) into the buffer """
        if not self.port.is_open:
            raise TransportError('Serial port is not open')
        try:
            data = self.port.read(1)
            if data:
                waiting = self.port.in_waiting
                if waiting > 0:
                    data += self.port.read(waiting)
        except (serial.SerialException, OSError, TypeError) as e:
            # pyserial raises OSError/TypeError from in_waiting once the device is gone or the port closed
            raise TransportError('Failed to read from serial port', e)
        if data:
            self._buffer.extend(data)
        return len(data)

    def read(self, size=None):
        """ Reads raw bytes, returning buffered bytes first

        :param size: Maximum number of bytes to return, or None for whatever is available
        :type size: int

        :return: The bytes read; empty if the read timed out
        :rtype: bytes
        """
        if len(self._buffer) == 0:
            self._fill()
        if size == None:
            size = len(self._buffer)
        data = bytes(self._buffer[:size])
        del self._buffer[:size]
        return data

    def readUntilAny(self, delimiters):
        """ Reads bytes up to and including the first byte in the specified delimiter set

        :param delimiters: The delimiter bytes, e.g. b'\\n>'
        :type delimiters: bytes

        :raise TimeoutException: if no delimiter arrived within the port's read timeout (data: partial bytes)
        :raise TransportError: if reading from the port failed

        :return: tuple of (data read, delimiter found)
        :rtype: tuple
        """
        scanned = 0
        while True:
            for i in range(scanned, len(self._buffer)):
                if self._buffer[i] in delimiters:
                    data = bytes(self._buffer[:i + 1])
                    del self._buffer[:i + 1]
                    return data, data[-1:]
            scanned = len(self._buffer)
            if self._fill() == 0:
                raise TimeoutException(bytes(self._buffer) if len(self._buffer) > 0 else None)

    def readLine(self):
        """ Reads a single line (up to and including the next newline character)

        :raise TimeoutException: if a complete line was not received within the port's read timeout
        :raise TransportError: if reading from the port failed

        :return: The decoded line, including line terminators
        :rtype: str
        """
        data, delimiter = self.readUntilAny(b'\n')
        return data.decode(self.encoding)


class StreamGate(object):
    """ Arbitrates access to the serial stream between the listener and command transactions

    A transaction registers a pause request and then acquires the stream; the listener
    stops taking the stream while any pause request is pending. The stream lock is
    re-entrant, so a transaction started by the listener thread itself (while it holds
    the stream) proceeds without waiting.
    """

    def __init__(self):
        self._streamLock = threading.RLock()
        self._pauseCondition = threading.Condition(threading.Lock())
        self._pauseRequests = 0

    @property
    def pauseRequested(self):
        return self._pauseRequests > 0

    @contextmanager
    def paused(self):
        """ Exclusive stream access for a command transaction (blocks until the listener has yielded) """
        with self._pauseCondition:
            self._pauseRequests += 1
        try:
            self._streamLock.acquire()
        finally:
            with self._pauseCondition:
                self._pauseRequests -= 1
                self._pauseCondition.notify_all()
        try:
            yield
        finally:
            self._streamLock.release()

    @contextmanager
    def polling(self):
        """ Stream access for one listener step (blocks while a transaction is pending or in progress) """
        with self._pauseCondition:
            while self._pauseRequests > 0:
                self._pauseCondition.wait()
        with self._streamLock:
            yield


class SerialComms(object):
    """ Wraps all low-level serial communications (actual read/write operations) """

    log = logging.getLogger('smshandler.serial_comms.SerialComms')

    # Default timeout for serial port reads (in seconds)
    timeout = 1
    # Character encoding used on the wire
    encoding = 'latin-1'

    def __init__(self, port, baudrate=115200, fatalErrorCallbackFunc=None, *args, **kwargs):
        """ Constructor

        :param fatalErrorCallbackFunc: function to call if the serial port fails while the listener is running
        :type fatalErrorCallbackFunc: func
        """
        self.port = port
        self.baudrate = baudrate
        self.serial = None
        self.reader = None
        self.gate = StreamGate()
        self.fatalErrorCallback = fatalErrorCallbackFunc or self._placeholderCallback

    @property
    def alive(self):
        """ :return: True if the serial port is open """
        return self.serial != None and self.serial.is_open

    def connect(self):
        """ Opens the serial port """
        try:
            self.serial = serial.Serial(port=self.port, baudrate=self.baudrate, timeout=self.timeout)
        except serial.SerialException as e:
            raise TransportError('Failed to open serial port {0}'.format(self.port), e)
        self.reader = LineReader(self.serial, self.encoding)

    def close(self):
        """ Closes the underlying serial port (does nothing if it is not open) """
        if self.serial != None:
            try:
                self.serial.close()
            except serial.SerialException as e:
                raise TransportError('Failed to close serial port', e)

    def setReadTimeout(self, timeout):
        """ Sets the maximum time (in seconds) a single read from the serial port blocks """
        self.serial.timeout = timeout

    def writeRaw(self, data):
        """ Writes the specified text to the serial port as-is (no line terminator is added) """
        self.log.debug('write: %r', data)
        try:
            self.serial.write(data.encode(self.encoding))
        except serial.SerialException as e:
            raise TransportError('Failed to write to serial port', e)

    def _placeholderCallback(self, *args, **kwargs):
        """ Placeholder callback function (does nothing) """
