""" SMS message record passed to callers and listener callbacks """

from .util import parseTextModeTimeStr


class Sms(object):
    """ A text mode SMS message, as read from modem storage or delivered directly by the modem

    The values are passed through exactly as the modem reported them; "date" in particular
    stays in the modem's native format (see the "time" property for a parsed version).
    """

    # Commonly seen text mode statuses (the modem may report others)
    STATUS_RECEIVED_UNREAD = 'REC UNREAD'
    STATUS_RECEIVED_READ = 'REC READ'
    STATUS_STORED_UNSENT = 'STO UNSENT'
    STATUS_STORED_SENT = 'STO SENT'
    STATUS_ALL = 'ALL'

    def __init__(self, index=0, status='', sender='', date='', message=''):
        # Storage slot; 0 for messages delivered directly (+CMT)
        self.index = index
        self.status = status
        self.sender = sender
        self.date = date
        self.message = message

    def isValid(self):
        """ :return: True if this record has both a sender and a message body """
        return len(self.sender) > 0 and len(self.message) > 0

    @property
    def time(self):
        """ The message timestamp as a timezone-aware datetime, or None if the date is not in text mode format """
        if not self.date:
            return None
        try:
            return parseTextModeTimeStr(self.date)
        except ValueError:
            return None

    def _fields(self):
        return (self.index, self.status, self.sender, self.date, self.message)

    def __eq__(self, other):
        if not isinstance(other, Sms):
            return NotImplemented
        return self._fields() == other._fields()

    # Records are mutable (the parser fills them in after construction)
    __hash__ = None

    def __repr__(self):
        return 'Sms(index={0!r}, status={1!r}, sender={2!r}, date={3!r}, message={4!r})'.format(*self._fields())
