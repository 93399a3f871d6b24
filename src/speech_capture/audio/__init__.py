"""Audio subsystem: input sources, speech detection and segment output."""
