"""
Extractors for Friends+Me Google+ Exporter files.

This subpackage sorts run arguments into exports, image lists, the category
mapping and the upload audit file, and loads the JSON exports.
"""
