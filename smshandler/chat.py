#!/usr/bin/env python

"""\
Interactive SMS chat with a single phone number

Incoming messages from the chat partner are printed as they arrive; every line typed
is sent as an SMS message. Commands:
  /multi         compose a multi-line message (end it with a line containing only ".")
  /quit, /exit   end the chat session
"""

import sys, logging, threading

from .handler import SmsHandler
from .exceptions import SmsHandlerException


class ChatUI(object):
    """ Console chat session with a single phone number """

    PROMPT = '> '
    MULTI_LINE_PROMPT = '| '
    QUIT_COMMANDS = ('/quit', '/exit')
    MULTI_LINE_COMMAND = '/multi'
    MULTI_LINE_END = '.'

    def __init__(self, phoneNumber, smsHandler, output=None):
        self.phoneNumber = phoneNumber
        self.smsHandler = smsHandler
        self.output = output or sys.stdout
        self._outputLock = threading.Lock()

    def _write(self, text):
        with self._outputLock:
            self.output.write(text)
            self.output.flush()

    def displayMessage(self, sender, message, timestamp):
        """ Prints a received message above the input prompt """
        # Clear the current prompt line, print the message, then redraw the prompt
        self._write('\r\033[K{0} [{1}]: {2}\n{3}'.format(sender, timestamp, message, self.PROMPT))

    def handleIncomingMessage(self, sms):
        """ SMS listener callback: displays messages from the chat partner, ignores all others """
        if sms.sender == self.phoneNumber:
            self.displayMessage(sms.sender, sms.message, sms.date)

    def sendMessage(self, message):
        """ Sends the message to the chat partner (blank messages are not sent)

        :return: True if a message was sent
        """
        if len(message.strip()) == 0:
            return False
        self.smsHandler.sendSms(self.phoneNumber, message)
        return True

    def _readMultiLine(self, inputStream):
        self._write('Multi-line mode: Type your message, end with a line containing only \'.\' to send\n')
        lines = []
        self._write(self.MULTI_LINE_PROMPT)
        while True:
            line = inputStream.readline()
            if not line:
                break
            line = line.strip()
            if line == self.MULTI_LINE_END:
                break
            lines.append(line)
            self._write(self.MULTI_LINE_PROMPT)
        return '\n'.join(lines)

    def _send(self, message):
        try:
            self.sendMessage(message)
        except SmsHandlerException as e:
            self._write('Error sending message: {0}\n'.format(e))

    def run(self, inputStream=None):
        """ Reads and sends messages until a quit command or the end of input """
        inputStream = inputStream or sys.stdin
        self._write(self.PROMPT)
        while True:
            line = inputStream.readline()
            if not line:
                break
            message = line.strip()
            if message in self.QUIT_COMMANDS:
                break
            if message == self.MULTI_LINE_COMMAND:
                multiMessage = self._readMultiLine(inputStream)
                if len(multiMessage) > 0:
                    self._send(multiMessage)
            elif len(message) > 0:
                self._send(message)
            self._write(self.PROMPT)


def parseArgs(argv=None):
    """ Argument parser """
    from argparse import ArgumentParser
    parser = ArgumentParser(description='Interactive SMS chat with a single phone number')
    parser.add_argument('-i', '--port', metavar='PORT', default='/dev/ttyUSB2', help='port to which the GSM modem is connected; a number or a device name.')
    parser.add_argument('-b', '--baud', metavar='BAUDRATE', type=int, default=115200, help='set baud rate')
    parser.add_argument('--debug', action='store_true', help='turn on debug (serial port dump)')
    parser.add_argument('phoneNumber', metavar='PHONE_NUMBER', help='phone number to chat with, e.g. +27820000000')
    return parser.parse_args(argv)

def main(argv=None):
    args = parseArgs(argv)
    if args.debug:
        logging.basicConfig(format='%(levelname)s: %(message)s', level=logging.DEBUG)
    handler = SmsHandler(args.port, args.baud)
    print('Connecting to GSM modem on {0}...'.format(args.port))
    try:
        handler.connect()
    except SmsHandlerException as e:
        sys.stderr.write('Error: failed to initialize modem: {0}\n'.format(e))
        sys.exit(1)
    print('SMS chat initialized successfully!')
    print('Connected to phone number: {0}'.format(args.phoneNumber))
    print('Type your messages and press Enter to send. Ctrl+C to exit.')
    print('-' * 50)
    chat = ChatUI(args.phoneNumber, handler)
    try:
        handler.listen(chat.handleIncomingMessage)
        chat.run()
    except KeyboardInterrupt:
        print('\nShutting down...')
    finally:
        handler.close()

if __name__ == '__main__':
    main()
