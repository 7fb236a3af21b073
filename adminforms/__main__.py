"""Run the desired interface after importing it."""

from argparse import ArgumentParser
from importlib import import_module
import sys
import os

os.chdir(os.environ.get('ADMINFORMS_DIR', '.'))

parser = ArgumentParser(description='Launcher for adminforms interfaces')
parser.add_argument('interface', help='The interface type to run',
                    choices=('web', 'config'))
args = parser.parse_args()

try:
    mod = import_module('.' + args.interface, __package__)
except ImportError:
    raise ImportError("interface couldn't be located. Did you run with the -m flag?")

mod.start()
sys.exit()
