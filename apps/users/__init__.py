"""Users app package: renters and fleet administrators."""
