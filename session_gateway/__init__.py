"""
Session gateway for the voice session demo.

The serverless-style HTTP side of the integration:
- POST /api/authorize exchanges an agent id for a voice session credential
  by forwarding to the Layercode authorization service
- GET /api/knowledge serves the static knowledge base as a prompt block
- GET /api/events exposes the structured events emitted by this process

No user authentication or rate limiting is done here.
"""
