"""HTML normalisation and sitemap XML helpers."""
