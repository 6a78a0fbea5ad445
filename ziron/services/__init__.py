"""
Application actions: plain async functions taking a session and/or queue client.

Routers and worker runners call these; nothing here knows about HTTP.
"""
