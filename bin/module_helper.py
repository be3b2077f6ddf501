#!/usr/bin/env python3
# vim: ts=4 et sw=4 sts=4 :

import importlib.util
import os
import sys


def tryFindModule(module):
    parent_dir = os.path.realpath(os.path.dirname(os.path.dirname(__file__)))
    sys.path.insert(0, parent_dir)

    if importlib.util.find_spec(module) is None:
        print("The module {} could not be found in '{}'!".format(
            module, parent_dir))

        sys.exit(4)


tryFindModule("roomsync")
