# -*- coding: utf-8 -*-

"""
Main entry point for running the DraftCrane footnote tools from a checkout.
"""

import sys

from draftcrane_footnotes.cli import main

if __name__ == '__main__':
    sys.exit(main())
