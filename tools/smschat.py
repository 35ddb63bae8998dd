#!/usr/bin/env python

"""\
Interactive SMS chat with a single phone number

See smshandler.chat for details.
"""

from smshandler.chat import main

if __name__ == '__main__':
    main()
