"""
NBS IPS QR: payment QR templates, interface language and the national
bank's IPS QR API.
"""

__version__ = "0.1.0"
