"""Core utilities and shared infrastructure.

- config: Run configuration loading and validation
- constants: Device profile, canvas sizes, fixed tag tables
- exceptions: Custom exception hierarchy
- logging_setup: Console logging for the command-line entry point
"""
