"""
Authentication Module

JWT bearer tokens for reseller users, login and password updates.
"""
