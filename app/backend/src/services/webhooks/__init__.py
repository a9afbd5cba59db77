"""Webhook delivery reliability pipeline: ingestion, retries and dead letter recovery."""
