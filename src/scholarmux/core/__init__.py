"""Aggregation core — limiter, aggregator and LLM support."""
