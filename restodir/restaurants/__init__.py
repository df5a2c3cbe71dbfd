"""Restaurants: validation, scoring and orchestration over the data store."""
