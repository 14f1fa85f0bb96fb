"""Crawl frontier, link extraction and HTTP fetching for SiteDocGen."""
