"""Donation API: Razorpay-backed donations with verified payment records."""

__version__ = "0.1.0"
