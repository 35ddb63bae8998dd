#!/usr/bin/env python

"""\
Demo: print modem information and all SMS messages stored on the SIM card, then delete them
"""

import logging

PORT = '/dev/ttyUSB2'
BAUDRATE = 115200

from smshandler import SmsHandler

def main():
    print('Initializing modem...')
    # Uncomment the following line to see what the modem is doing:
    #logging.basicConfig(format='%(levelname)s: %(message)s', level=logging.DEBUG)
    with SmsHandler(PORT, BAUDRATE) as modem:
        modem.connect()
        print(modem.getModemInfo())
        print('Signal strength:', modem.signalStrength)
        for sms in modem.listStoredSms():
            print('[{0}] {1} ({2}, {3}):\n{4}\n'.format(sms.index, sms.sender, sms.date, sms.status, sms.message))
            modem.deleteStoredSms(sms.index)

if __name__ == '__main__':
    main()
