"""Domain services: event lifecycle, RSVP ledger, mail dispatch.

Import the submodules directly; they depend on ``eventhub.auth.policy``,
which in turn uses the error types defined here.
"""
