"""
Test package for the device identity and property state layer.
"""
