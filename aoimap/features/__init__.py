"""Saved AOI features: models, remote stores, local cache and the FeatureStore."""
