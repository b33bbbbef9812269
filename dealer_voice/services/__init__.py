"""
Services module for the external systems the voice agent backend talks to.

Key components:
- supabase_client: Service-role Supabase client shared by the REST API
- signup_service: Account creation with compensating rollback
- dealership_service: Tenant-scoped dealership, Twilio and phone number operations
- twilio_service: TwiML builders, webhook signature checks, Twilio REST calls
- vapi_client: Vapi REST API client
- agent_config: Per-tenant assistant configuration
- call_events: Vapi webhook event handling and call history
- tool_router: Registry of tools the assistant can call
- cdk_client: CDK CRM client
- key_verification: Checks for the speech and language vendor API keys
"""
