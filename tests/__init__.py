"""Test package for Orbit Reflex.

Core modules are tested directly with fake clocks and in-memory stores.
UI smoke tests run headlessly using pygame's dummy video driver to avoid
opening real windows. To run these tests, execute ``pytest`` from the
project root.
"""
