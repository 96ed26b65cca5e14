"""
Unit tests: property stores, codec, pairing client, crypto and configuration.
"""
