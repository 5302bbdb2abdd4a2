"""Test package for the arithmetic quiz.

Core tests drive the deterministic generators, timer and session state
machine with a fake clock and synthetic ticks.  UI smoke tests run headlessly
using pygame's dummy video driver to avoid opening real windows.  To run these
tests, execute ``pytest`` from the project root.
"""
