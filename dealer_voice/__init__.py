"""
Dealer Voice - Twilio to Vapi media relay and dealership voice agent backend

This application connects incoming dealership phone calls to Vapi voice
assistants and serves the multi-tenant API behind the dealership dashboard.

Architecture Overview:
- FastAPI server exposing the Twilio Media Streams WebSocket and REST endpoints
- One upstream Vapi WebSocket per call, opened when Twilio starts the stream
- Supabase (Postgres + auth) for tenants, dealerships, phone numbers and call logs
- Twilio REST API for credential checks and phone number webhook configuration

Key Components:
- api: REST routers (signup, dealerships, Twilio webhooks, Vapi, tool router)
- config: Settings, constants and logging setup
- handlers: Handlers for Twilio Media Stream frames and echo socket messages
- models: Wire schemas, request bodies, table rows and per-call session state
- relay: Upstream Vapi WebSocket client
- services: Supabase, Twilio, Vapi, CDK and API key verification services
- websocket_manager: Connection lifecycle and frame routing for both sockets

Getting Started:
1. Set up environment variables:
   - VAPI_API_KEY: Vapi private key (the relay runs without an upstream if unset)
   - SUPABASE_URL / SUPABASE_SERVICE_ROLE_KEY: Database for the REST API
   - PUBLIC_BASE_URL: Public URL Twilio uses to reach the webhooks
   - PORT: Port to run the server on (default 8080)

2. Start the server:
   ```bash
   python run.py
   ```

3. Point a Twilio number's voice webhook at ``<PUBLIC_BASE_URL>/api/twilio/voice``.
"""
