#!/usr/bin/env python

"""\
Demo: handle incoming SMS messages by replying to them

Simple demo app that listens for incoming SMS messages, displays the sender's number
and the messages, then replies to the SMS by saying "thank you"
"""

import time

PORT = '/dev/ttyUSB2'
BAUDRATE = 115200

from smshandler import SmsHandler

modem = SmsHandler(PORT, BAUDRATE)

def handleSms(sms):
    print('== SMS message received ==\nFrom: {0}\nTime: {1}\nMessage:\n{2}\n\n'.format(sms.sender, sms.date, sms.message))
    print('Replying to SMS...')
    modem.sendSms(sms.sender, 'Thank you')
    print('SMS sent.\n')

def main():
    modem.connect()
    modem.listen(handleSms)
    print('Waiting for SMS message...')
    try:
        while modem.listening:
            time.sleep(1)
    except KeyboardInterrupt:
        pass
    finally:
        modem.close()

if __name__ == '__main__':
    main()
