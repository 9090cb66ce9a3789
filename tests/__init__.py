# -*- coding: utf-8 -*-
"""Rendezvous test suite."""
