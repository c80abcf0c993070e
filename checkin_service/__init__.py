"""Event check-in service: registration codes, attendee registration and door scans."""
