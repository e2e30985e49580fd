"""
repositories/ - State Layer
===========================
In-memory stores for per-user state: conversation Sessions and the API
tokens of logged-in users. Nothing here survives a process restart.
"""
