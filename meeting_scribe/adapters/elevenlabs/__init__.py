"""ElevenLabs Scribe adapters (batch and realtime)."""
