"""
REST API routers.

Key components:
- auth: Account signup
- dealerships: Tenant-scoped dealership settings, Twilio and phone numbers
- twilio: Voice webhooks that route incoming calls to the media relay
- vapi: Phone number proxy, Vapi event webhook and call history
- tools: Tool router endpoint
"""
