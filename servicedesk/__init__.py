"""Service desk ticketing API."""
