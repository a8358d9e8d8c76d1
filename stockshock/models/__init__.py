"""Data models for storefront payloads, cooldowns and stores."""
