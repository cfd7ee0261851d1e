"""
Packaged configuration files.
"""
