"""
Catalog Search

Read path of a catalog search service: query composition, merchandising
rules, spell correction, facets and category graphs over Solr.
"""
