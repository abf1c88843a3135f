"""Hotline Archive scraper: checkpointed year/make/model/engine crawl of Identifix Hotline Archives."""
