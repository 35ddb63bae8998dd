#!/usr/bin/env python
# -*- coding: utf-8 -*-

""" Some common text utilities used when parsing modem responses """

from datetime import datetime, timedelta, tzinfo
import re

class SimpleOffsetTzInfo(tzinfo):
    """ Very simple implementation of datetime.tzinfo offering set timezone offset for datetime instances """

    def __init__(self, offsetInHours=None):
        """ Constructs a new tzinfo instance using an amount of hours as an offset

        :param offsetInHours: The timezone offset, in hours (may be negative)
        :type offsetInHours: int or float
        """
        if offsetInHours != None: #pragma: no cover
            self.offsetInHours = offsetInHours

    def utcoffset(self, dt):
        return timedelta(hours=self.offsetInHours)

    def dst(self, dt):
        return timedelta(0)

    def __repr__(self):
        return 'smshandler.util.SimpleOffsetTzInfo({0})'.format(self.offsetInHours)

def parseTextModeTimeStr(timeStr):
    """ Parses the specified SMS text mode time string

    The time stamp format is "yy/MM/dd,hh:mm:ss±zz"
    (yy = year, MM = month, dd = day, hh = hour, mm = minute, ss = second, zz = time zone
    [Note: the unit of time zone is a quarter of an hour])

    :param timeStr: The time string to parse
    :type timeStr: str

    :raise ValueError: if the string is not in the text mode time format

    :return: datetime object representing the specified time string
    :rtype: datetime.datetime
    """
    msgTime = timeStr[:-3]
    tzOffsetHours = int(timeStr[-3:]) * 0.25
    return datetime.strptime(msgTime, '%y/%m/%d,%H:%M:%S').replace(tzinfo=SimpleOffsetTzInfo(tzOffsetHours))

def splitQuoted(text, sep=','):
    """ Splits the specified string on the separator character, but never inside double quotes

    Quote characters are kept in the resulting fields (use stripQuotes() to remove them).
    An empty input string results in an empty list.

    :param text: The string to split, e.g. '"REC READ","+27820000000","","24/01/15,10:00:00+00"'
    :type text: str
    :param sep: The single-character field separator
    :type sep: str

    :return: list of fields
    :rtype: list
    """
    fields = []
    current = []
    inQuotes = False
    for char in text:
        if char == '"':
            inQuotes = not inQuotes
        if char == sep and not inQuotes:
            fields.append(''.join(current))
            current = []
        else:
            current.append(char)
    if len(current) > 0 or len(fields) > 0:
        fields.append(''.join(current))
    return fields

def stripQuotes(field):
    """ Removes surrounding whitespace and double quotes from a response field """
    return field.strip().strip('"')

def removePrefix(line, prefix):
    """ Returns the specified line with the given prefix removed, or None if the line does not start with it """
    if line.startswith(prefix):
        return line[len(prefix):]
    return None

def lineMatching(regexStr, lines):
    """ Searches through the specified list of strings and returns the regular expression
    match for the first line that matches the specified regex string, or None if no match was found

    :type regexStr: Regular expression string to use
    :type lines: List of lines to search

    :return: the regular expression match for the first line that matches the specified regex, or None if no match was found
    :rtype: re.Match
    """
    regex = re.compile(regexStr)
    for line in lines:
        m = regex.match(line)
        if m:
            return m
    else:
        return None
