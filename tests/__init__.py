"""Test package for Brain Trainer.

This package contains unit and headless simulation tests for the Symbol
Match game, the scheduler and the game catalog, plus UI smoke tests.  The
UI tests run headlessly using pygame's dummy video driver to avoid opening
real windows.  To run these tests, execute ``pytest`` from the project root.
"""
