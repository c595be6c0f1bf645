"""Core domain package for govwatch.

Core contains the subscriber registry, the proposal watermark and the
dispatch/persistence loops without any Telegram or file-format specific code.
"""
