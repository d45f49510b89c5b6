"""Mail item intake, queries and lifecycle operations."""
