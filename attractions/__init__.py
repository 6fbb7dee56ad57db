"""
Attractions reseller API.

Proxies the attractions vendor API for resellers and gates bookings behind
wallet balance checks and a booking approval workflow.
"""

__version__ = "1.0.0"
