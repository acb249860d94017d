"""
Utilities package.

Error taxonomy, datetime helpers and database decorators.
"""
