"""
Utilities: response parsing, rate limiting, token counting, logging
"""
