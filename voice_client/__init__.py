"""
Voice client for the voice session demo.

Consumes the voice platform's agent events and keeps the live transcript:
user transcript deltas are reassembled per turn by sequence counter,
assistant text is accumulated per turn, and the session controller resets
state on connect attempts and disconnects.

No audio, speech recognition or synthesis lives here; the platform's
transport delivers already-decoded events.
"""
