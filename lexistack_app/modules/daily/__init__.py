"""Daily content selection (today pack and hard word of the day).

Served through the user dictionary blueprint; this module has no routes.
"""
