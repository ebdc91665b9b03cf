"""Shared helpers -- number coercion, formatting and advisory validators."""
