"""
Top-level package for the Google+ to forum import utility.

This package bundles all components required to read Friends+Me Google+
Exporter (F+MG+E) output, decode Google+ message fragments into forum markup,
make up titles for untitled posts, map Google+ categories and users to forum
categories and accounts, upload downloaded images once each, and create
topics and replies.  Modules are split into subpackages:

* :mod:`gplus_import.extractors` – input file loading and classification
* :mod:`gplus_import.parsers` – fragment decoding, rendering and titles
* :mod:`gplus_import.migrators` – forum API interactions
* :mod:`gplus_import.models` – record models
* :mod:`gplus_import.utils` – mapping, identities, uploads, tags and reports

Each layer has no direct knowledge of configuration or execution strategy;
orchestration is handled in the migration_tool.
"""
