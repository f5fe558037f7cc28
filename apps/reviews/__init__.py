"""Reviews app package: renters' ratings of their bookings."""
