"""Example application that counts page views in a session."""
