"""
Test suites package.

Holds the UI framework (`testsuites.ui_testing.framework`), the page objects
and the test modules, importable so `run_tests.py` and the unit tests can reach
the framework directly.
"""
