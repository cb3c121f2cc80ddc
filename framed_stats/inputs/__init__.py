"""framed_stats.inputs package

Adapters that ingest information from external sources and translate it into
the internal records the aggregation works on.

Modules
-------
* discord – Page through a channel's message history, honouring Discord's
  rate-limit headers.
"""
