"""Shared HTTP plumbing for provider clients."""
