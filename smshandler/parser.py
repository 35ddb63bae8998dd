""" Text mode SMS response parsing

Parses +CMGL (list), +CMGR (read), +CMT (direct delivery) and +CMTI (new message
stored) lines into Sms records. Fields are comma-separated and may be quoted; a
comma inside quotes never splits a field (text mode dates look like "24/01/15,10:00:00+00").
"""

import logging

from .exceptions import ParseError
from .sms import Sms
from .util import splitQuoted, stripQuotes, removePrefix

log = logging.getLogger('smshandler.parser')

CMGL_PREFIX = '+CMGL:'
CMGR_PREFIX = '+CMGR:'
CMT_PREFIX = '+CMT:'
CMTI_PREFIX = '+CMTI:'

# Lines that end a response, never a message body
TERMINAL_LINES = ('OK', 'ERROR')


def parseSmsHeader(line):
    """ Parses a +CMGL or +CMGR text mode header line

    Example headers::

        +CMGL: 1,"REC READ","+27820000000","","24/01/15,10:00:00+00"
        +CMGR: "REC UNREAD","+27820000000","John","24/01/15,10:00:00+00"
        +CMGR: "REC UNREAD","+27820000000","24/01/15,10:00:00+00"

    After the prefix (and the index, for +CMGL) the fields are: status, sender, an
    optional alphanumeric name and the date. With 4 or more fields the date is the
    4th; with exactly 3 it is the 3rd.

    :param line: The header line
    :type line: str

    :raise ParseError: if the line has no +CMGL/+CMGR prefix or too few fields

    :return: An Sms record with an empty message body
    :rtype: smshandler.sms.Sms
    """
    line = line.strip()
    index = 0
    content = removePrefix(line, CMGL_PREFIX)
    if content != None:
        fields = splitQuoted(content.strip())
        if len(fields) == 0:
            raise ParseError(line, 'Missing +CMGL index')
        try:
            index = int(stripQuotes(fields.pop(0)))
        except ValueError:
            raise ParseError(line, 'Invalid +CMGL index')
    else:
        content = removePrefix(line, CMGR_PREFIX)
        if content == None:
            raise ParseError(line, 'Not a +CMGL/+CMGR header')
        fields = splitQuoted(content.strip())
    if len(fields) < 2:
        raise ParseError(line, 'Insufficient fields in SMS header')
    sms = Sms(index=index, status=stripQuotes(fields[0]), sender=stripQuotes(fields[1]))
    if len(fields) >= 4:
        sms.date = stripQuotes(fields[3])
    elif len(fields) == 3:
        sms.date = stripQuotes(fields[2])
    return sms

def parseCmtHeader(line):
    """ Parses a +CMT (directly delivered SMS) header line, e.g.: +CMT: "+27820000000","","24/01/15,10:00:00+00"

    :raise ParseError: if the line is too short, not a +CMT line, has fewer than 3 fields or has no sender

    :return: An Sms record with an empty message body
    :rtype: smshandler.sms.Sms
    """
    line = line.strip()
    if len(line) < len(CMT_PREFIX) + 2:
        raise ParseError(line, 'Truncated +CMT header')
    content = removePrefix(line, CMT_PREFIX)
    if content == None:
        raise ParseError(line, 'Not a +CMT header')
    fields = splitQuoted(content.strip())
    if len(fields) < 3:
        raise ParseError(line, 'Insufficient fields in +CMT header')
    if len(stripQuotes(fields[0])) == 0:
        raise ParseError(line, 'Missing sender in +CMT header')
    return Sms(sender=stripQuotes(fields[0]), date=stripQuotes(fields[2]))

def parseCmtiIndex(line):
    """ Parses the storage index from a +CMTI notification line, e.g.: +CMTI: "SM",3

    :raise ParseError: if the line is not a +CMTI line or has no numeric index

    :rtype: int
    """
    line = line.strip()
    content = removePrefix(line, CMTI_PREFIX)
    if content == None:
        raise ParseError(line, 'Not a +CMTI notification')
    fields = splitQuoted(content.strip())
    if len(fields) < 2:
        raise ParseError(line, 'Missing index in +CMTI notification')
    try:
        return int(stripQuotes(fields[1]))
    except ValueError:
        raise ParseError(line, 'Invalid index in +CMTI notification')

def _isHeader(line):
    return line.startswith(CMGL_PREFIX) or line.startswith(CMGR_PREFIX)

def _parseHeaderAndBody(lines, i):
    """ Parses the header at lines[i] and the body line following it

    :return: tuple of (Sms, number of lines consumed)
    """
    sms = parseSmsHeader(lines[i])
    if i + 1 < len(lines):
        body = lines[i + 1].strip()
        if not _isHeader(body) and body not in TERMINAL_LINES:
            sms.message = body
            return sms, 2
    return sms, 1

def parseSmsList(response):
    """ Parses a +CMGL response into a list of Sms records

    Each header line is followed by a single body line. Malformed or incomplete
    entries are skipped; parsing continues with the rest of the response.

    :param response: The response text (lines separated by newlines)
    :type response: str

    :return: The messages that could be parsed, in response order
    :rtype: list
    """
    messages = []
    lines = response.split('\n')
    i = 0
    while i < len(lines):
        line = lines[i].strip()
        if line.startswith(CMGL_PREFIX):
            try:
                sms, consumed = _parseHeaderAndBody(lines, i)
            except ParseError as e:
                log.debug('Skipping +CMGL entry: %s', e)
                i += 1
                continue
            i += consumed
            if sms.isValid():
                messages.append(sms)
            else:
                log.debug('Skipping incomplete +CMGL entry: %r', sms)
        else:
            i += 1
    return messages

def parseStoredSms(response, index):
    """ Parses a +CMGR response for the message at the specified storage index

    :raise ParseError: if the response does not contain a complete message

    :rtype: smshandler.sms.Sms
    """
    lines = response.split('\n')
    for i, line in enumerate(lines):
        if line.strip().startswith(CMGR_PREFIX):
            sms, consumed = _parseHeaderAndBody(lines, i)
            sms.index = index
            if sms.isValid():
                return sms
            raise ParseError(line, 'Incomplete SMS message')
    raise ParseError(response, 'No +CMGR header in response')
