"""
Integration tests for the HubSpot client core.

Run the complete client stack against an in-process fake HubSpot API.
"""
