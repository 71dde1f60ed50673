#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Entry point for the TribeNest nginx + Let's Encrypt setup.

Usage: install.py <domain> <email> [options]
"""

import sys

from setup.main_installer import main

if __name__ == "__main__":
    sys.exit(main())
