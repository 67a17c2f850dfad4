"""Static scanners, the rule table and the scan engine."""
