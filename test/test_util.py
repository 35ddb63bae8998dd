#!/usr/bin/env python

""" Test suite for smshandler.util """

import unittest, logging
from datetime import datetime, timedelta

from smshandler.util import lineMatching, splitQuoted, stripQuotes, removePrefix, \
    parseTextModeTimeStr, SimpleOffsetTzInfo

class TestUtil(unittest.TestCase):
    """ Tests misc utilities from smshandler.util """

    def test_lineMatching(self):
        """ Tests function: lineMatching """
        lines = ['12345', 'abc', 'defghi', 'abcdef', 'efg']
        result = lineMatching(r'^abc.*$', lines)
        self.assertEqual(result.string, 'abc')
        result = lineMatching(r'^\d+$', lines)
        self.assertEqual(result.string, '12345')
        result = lineMatching(r'^ZZZ\d+$', lines)
        self.assertEqual(result, None)

    def test_splitQuoted(self):
        """ Tests function: splitQuoted """
        tests = (('1,2,3', ['1', '2', '3']),
                 ('"a,b"', ['"a,b"']),
                 ('"REC READ","+27820000000","","24/01/15,10:00:00+08"', ['"REC READ"', '"+27820000000"', '""', '"24/01/15,10:00:00+08"']),
                 ('"SM",3', ['"SM"', '3']),
                 ('a,,b', ['a', '', 'b']),
                 ('a,', ['a', '']),
                 ('', []))
        for text, expected in tests:
            self.assertEqual(splitQuoted(text), expected)
        self.assertEqual(splitQuoted('a;"b;c";d', ';'), ['a', '"b;c"', 'd'])

    def test_stripQuotes(self):
        """ Tests function: stripQuotes """
        self.assertEqual(stripQuotes(' "REC READ" '), 'REC READ')
        self.assertEqual(stripQuotes('""'), '')
        self.assertEqual(stripQuotes('3'), '3')

    def test_removePrefix(self):
        """ Tests function: removePrefix """
        self.assertEqual(removePrefix('+CMTI: "SM",3', '+CMTI:'), ' "SM",3')
        self.assertEqual(removePrefix('+CMT', '+CMTI:'), None)
        self.assertEqual(removePrefix('', '+CMT:'), None)

    def test_parseTextModeTimeStr(self):
        """ Tests function: parseTextModeTimeStr """
        result = parseTextModeTimeStr('24/01/15,10:30:45+08')
        self.assertEqual(result.replace(tzinfo=None), datetime(2024, 1, 15, 10, 30, 45))
        self.assertEqual(result.utcoffset(), timedelta(hours=2))
        result = parseTextModeTimeStr('25/07/21,21:07:17-28')
        self.assertEqual(result.utcoffset(), timedelta(hours=-7))
        self.assertRaises(ValueError, parseTextModeTimeStr, 'not a date')

    def test_SimpleOffsetTzInfo(self):
        """ Basic test for the SimpleOffsetTzInfo class """
        tests = (2, -4, 0, 3.5)
        for hours in tests:
            tz = SimpleOffsetTzInfo(hours)
            self.assertEqual(tz.offsetInHours, hours)
            self.assertEqual(tz.utcoffset(None), timedelta(hours=hours))
            self.assertEqual(tz.dst(None), timedelta(0))
            self.assertIsInstance(tz.__repr__(), str)


if __name__ == "__main__":
    logging.basicConfig(format='%(levelname)s: %(message)s', level=logging.DEBUG)
    unittest.main()
