"""Site crawl, indexing, clustering and link recommendation services."""
