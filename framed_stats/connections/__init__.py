"""framed_stats.connections package

Clients for the remote APIs the service talks to.

Modules
-------
* discord_client – Discord REST API (history, follow-ups, command registry).
"""
