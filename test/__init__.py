""" Test suite for smshandler """
