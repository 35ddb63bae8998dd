#!/usr/bin/env python


"""\
Simple script to send an SMS message
"""
import sys, logging

from smshandler import SmsHandler
from smshandler.exceptions import SmsHandlerException, TimeoutException

def parseArgs():
    """ Argument parser """
    from argparse import ArgumentParser
    parser = ArgumentParser(description='Simple script for sending SMS messages')
    parser.add_argument('-i', '--port', metavar='PORT', help='port to which the GSM modem is connected; a number or a device name.')
    parser.add_argument('-b', '--baud', metavar='BAUDRATE', type=int, default=115200, help='set baud rate')
    parser.add_argument('--debug', action='store_true', help='turn on debug (serial port dump)')
    parser.add_argument('destination', metavar='DESTINATION', help='destination mobile number')
    parser.add_argument('message', nargs='?', metavar='MESSAGE', help='message to send, defaults to stdin-prompt')
    return parser.parse_args()

def main():
    args = parseArgs()
    if args.port == None:
        sys.stderr.write('Error: No port specified. Please specify the port to which the GSM modem is connected using the -i argument.\n')
        sys.exit(1)
    if args.debug:
        # enable dump on serial port
        logging.basicConfig(format='%(levelname)s: %(message)s', level=logging.DEBUG)

    handler = SmsHandler(args.port, args.baud)
    print('Connecting to GSM modem on {0}...'.format(args.port))
    try:
        handler.connect()
    except SmsHandlerException as e:
        sys.stderr.write('Error: failed to initialize modem: {0}\n'.format(e))
        sys.exit(1)
    if args.message is None:
        print('\nPlease type your message and press enter to send it:')
        text = input('> ')
    else:
        text = args.message
    print('\nSending SMS message...')
    try:
        reference = handler.sendSms(args.destination, text)
    except TimeoutException:
        print('Failed to send message: the send operation timed out')
        handler.close()
        sys.exit(1)
    except SmsHandlerException as e:
        print('Failed to send message: {0}'.format(e))
        handler.close()
        sys.exit(1)
    else:
        handler.close()
        if reference != None:
            print('Message sent (reference {0}).'.format(reference))
        else:
            print('Message sent.')

if __name__ == '__main__':
    main()
