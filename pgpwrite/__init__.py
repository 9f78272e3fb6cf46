"""Stacked OpenPGP packet writers, symmetric CFB encryption and integrity-protected packets."""

__version__ = "0.1.0"