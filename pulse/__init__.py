# -*- coding: utf-8 -*-
"""Pulse - guest search/filter engine and snapshot API for Proxmox dashboards"""

from pulse.constants import PULSE_VERSION

__version__ = PULSE_VERSION
