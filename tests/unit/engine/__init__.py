"""
Engine unit tests.
"""
