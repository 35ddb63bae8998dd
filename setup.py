#!/usr/bin/env python

""" python-smshandler installation script """

import sys
from setuptools import setup, Command

with open('requirements.txt') as f:
    requires = f.readlines()
test_command = [sys.executable, '-m', 'unittest', 'discover']
coverage_command = ['coverage', 'run', '-m', 'unittest', 'discover']

VERSION = '0.1'

class RunUnitTests(Command):
    """ run unit tests """

    user_options = []
    description = __doc__[1:]

    def initialize_options(self):
        pass

    def finalize_options(self):
        pass

    def run(self):
        import subprocess
        errno = subprocess.call(test_command)
        raise SystemExit(errno)

class RunUnitTestsCoverage(Command):
    """ run unit tests and report on code coverage using the 'coverage' tool """

    user_options = []
    description = __doc__[1:]

    def initialize_options(self):
        pass

    def finalize_options(self):
        pass

    def run(self):
        import subprocess
        errno = subprocess.call(coverage_command)
        if errno == 0:
            subprocess.call(['coverage', 'report'])
        raise SystemExit(errno)

setup(name='python-smshandler',
      version=VERSION,
      description='Send, receive and manage SMS messages through an attached GSM modem (AT command text mode)',
      license='LGPLv3+',

      long_description="""\
python-smshandler drives a GSM modem attached to a serial port using text mode
AT commands. It lets an application send SMS messages while a background listener
delivers incoming messages to a callback function.

Its features include:
- sending SMS messages (returns the network's message reference)
- listening for incoming messages (+CMT and +CMTI notifications) via a callback
- listing, reading and deleting messages stored on the SIM card
- checking signal strength and modem identification
- wraps AT command errors (including +CME/+CMS error codes) into Python exceptions
- issuing your own AT commands, safely interleaved with the incoming message listener

Bundled utilities:
- sendsms.py: a simple command line script to send SMS messages
- smschat.py: interactive SMS chat with a single phone number
""",

      classifiers=['Development Status :: 4 - Beta',
                   'Environment :: Console',
                   'Intended Audience :: Developers',
                   'Intended Audience :: Telecommunications Industry',
                   'License :: OSI Approved :: GNU Lesser General Public License v3 or later (LGPLv3+)',
                   'Operating System :: OS Independent',
                   'Programming Language :: Python :: 3',
                   'Topic :: Communications :: Telephony',
                   'Topic :: Software Development :: Libraries :: Python Modules',
                   'Topic :: System :: Hardware',
                   'Topic :: Terminals :: Serial'],
      keywords = ['gsm', 'sms', 'modem', 'mobile', 'usb', 'serial'],

      packages=['smshandler'],
      scripts=['tools/sendsms.py', 'tools/smschat.py'],
      python_requires='>=3.3',
      install_requires=requires,
      extras_require={'test': ['coverage']},
      cmdclass = {'test': RunUnitTests,
                  'coverage': RunUnitTestsCoverage})
