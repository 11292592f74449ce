"""Property marketplace backend: subscriptions, listings, site visits, group buying."""
