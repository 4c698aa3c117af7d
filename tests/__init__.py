"""Test package for the NeuroDetect waiting-room game.

Engine tests drive the trial engine with a fake clock; UI tests run
headlessly using pygame's dummy video driver to avoid opening real windows.
To run these tests, execute ``pytest`` from the project root.
"""
