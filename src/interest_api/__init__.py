"""
Interest API

Create, update and delete records by remote id.
"""
