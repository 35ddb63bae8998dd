""" Module defines exceptions used by smshandler """

class SmsHandlerException(Exception):
    """ Base exception raised for error conditions when interacting with the GSM modem """


class TimeoutException(SmsHandlerException):
    """ Raised when a command or read times out """

    def __init__(self, data=None):
        """ @param data: Any data that was read before the timeout occurred (if applicable) """
        super(TimeoutException, self).__init__(data)
        self.data = data


class TransportError(SmsHandlerException):
    """ Raised when the serial port cannot be opened, read from, written to or closed """

    def __init__(self, message, cause=None):
        """ @param cause: the underlying exception (usually a serial.SerialException) """
        super(TransportError, self).__init__('{0}: {1}'.format(message, cause) if cause != None else message)
        self.cause = cause


class InvalidStateException(SmsHandlerException):
    """ Raised when an API method call is invoked on an object that is in an incorrect state """


class ParseError(SmsHandlerException):
    """ Raised when a modem response line cannot be parsed """

    def __init__(self, line, reason=None):
        super(ParseError, self).__init__('{0}: {1!r}'.format(reason or 'Malformed line', line))
        self.line = line


class CommandError(SmsHandlerException):
    """ Raised if the modem returns an error in response to an AT command

    May optionally include an error type (CME or CMS) and -code (error-specific).
    The raw response text is available in the "response" attribute.
    """

    _description = ''

    def __init__(self, command=None, response=None, type=None, code=None):
        self.command = command
        self.response = response
        self.type = type
        self.code = code
        if type != None and code != None:
            super(CommandError, self).__init__('{0} {1}{2}'.format(type, code, ' ({0})'.format(self._description) if len(self._description) > 0 else ''))
        elif command != None and response != None:
            super(CommandError, self).__init__('{0}: {1!r}'.format(command, response))
        elif command != None:
            super(CommandError, self).__init__(command)
        else:
            super(CommandError, self).__init__()


class CmeError(CommandError):
    """ ME error result code : +CME ERROR: <error>

    Issued in response to an AT command
    """

    def __init__(self, command, code, response=None):
        super(CmeError, self).__init__(command, response, 'CME', code)


class CmsError(CommandError):
    """ Message service failure result code: +CMS ERROR : <er>

    Issued in response to an AT command
    """

    def __new__(cls, *args, **kwargs):
        # Return a specialized version of this class if possible
        if len(args) >= 2:
            code = args[1]
            if code == 330:
                return SmscNumberUnknownError(args[0], response=kwargs.get('response'))
        return super(CmsError, cls).__new__(cls)

    def __init__(self, command, code, response=None):
        super(CmsError, self).__init__(command, response, 'CMS', code)


class SmscNumberUnknownError(CmsError):
    """ Raised if the SMSC (service centre) address is missing when trying to send an SMS message """

    _description = 'SMSC number not set'

    def __init__(self, command, code=330, response=None):
        super(SmscNumberUnknownError, self).__init__(command, code, response)
