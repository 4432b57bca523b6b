"""
Web interface: inventory page and REST API.
"""
