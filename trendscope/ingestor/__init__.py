"""Headline ingestion from Google News RSS."""
