"""
Forum API migrators and helpers.

This subpackage provides the client used to look up and create accounts,
categories, uploads, topics and replies on the forum.  It encapsulates rate
limiting and header injection (``Api-Key``/``Api-Username``).
"""
