""" Package that allows sending and receiving SMS messages through an attached GSM modem (AT commands, text mode)

The main class is SmsHandler, which can be imported directly from this module.

Other important and useful classes are:
smshandler.sms.Sms: a received or stored SMS message; passed to the listener callback function
smshandler.listener.SmsListener: background thread(s) watching for incoming SMS notifications

All smshandler-specific exceptions are defined in the smshandler.exceptions module.
"""

from .handler import SmsHandler
from .sms import Sms
