'''
Logging tools for nkzlb.

The logger prints logged statements to STDERR through the root handler.

Only errors are shown by default. Call verbose() to follow the solver
iterations and timings, or quiet() to go back to errors only.
'''

import logging

logging.basicConfig(
    format="%(message)s"
)

_log = logging.getLogger("nkzlb")

_log.setLevel(logging.ERROR)

def disable_logging():
    _log.disabled = True

def enable_logging():
    _log.disabled = False

def warnings():
    _log.setLevel(logging.WARNING)

def quiet():
    _log.setLevel(logging.ERROR)

def verbose():
    _log.setLevel(logging.DEBUG)

def set_verbosity_level(level):
    _log.setLevel(level)
