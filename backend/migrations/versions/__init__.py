"""
Migration versions

Files are named XXXX_description.py where XXXX is the 4-digit version.
"""
