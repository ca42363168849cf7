"""
Event handler discovery and dispatch.

Handler modules live in a directory tree. At startup each one is found by
the catalog, imported, checked by the validator and registered with the
dispatcher, which wires it to the bot with its failures contained.
"""
