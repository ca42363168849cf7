"""
Bundled Discord event handlers.

Every non-underscore module in this tree is discovered and registered at
startup by welcomer.dispatch.loader. A handler module defines
``event_name``, ``execute`` and optionally ``once`` and ``prod_only``.
"""
