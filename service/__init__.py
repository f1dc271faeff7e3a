"""
HTTP service exposing billing and GS1 endpoints
"""
