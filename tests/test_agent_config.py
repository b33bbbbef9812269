import unittest

from dealer_voice.models.records import TenantLookup
from dealer_voice.services.agent_config import (
    DEFAULT_GREETING,
    DEFAULT_VOICE_ID,
    build_agent_config,
    create_vapi_session,
)


def make_tenant(agent_config=None):
    return TenantLookup(
        tenant_id="tenant-1",
        tenant_name="Main Street Motors",
        dealership_id="dealer-1",
        dealership_name="Main Street Motors",
        agent_config=agent_config,
    )


class TestAgentConfig(unittest.TestCase):
    def test_defaults(self):
        config = build_agent_config(make_tenant())

        self.assertEqual(config["name"], "Main Street Motors Service Agent")
        self.assertEqual(config["firstMessage"], DEFAULT_GREETING)
        self.assertEqual(config["model"]["model"], "gpt-4o")
        self.assertEqual(config["model"]["temperature"], 0.5)
        self.assertIn("Main Street Motors", config["model"]["messages"][0]["content"])
        self.assertEqual(
            config["voice"],
            {"provider": "cartesia", "voiceId": DEFAULT_VOICE_ID, "model": "sonic-3"},
        )
        self.assertEqual(config["transcriber"]["model"], "nova-3")
        self.assertEqual(config["transcriber"]["endpointing"], 150)

    def test_tenant_overrides(self):
        config = build_agent_config(
            make_tenant({"systemPrompt": "Be brief.", "voiceId": "voice-9", "greeting": "Hello!"})
        )

        self.assertEqual(config["model"]["messages"][0]["content"], "Be brief.")
        self.assertEqual(config["voice"]["voiceId"], "voice-9")
        self.assertEqual(config["firstMessage"], "Hello!")

    def test_analysis_plan_outcomes(self):
        plan = build_agent_config(make_tenant())["analysisPlan"]

        self.assertTrue(plan["summaryPlan"]["enabled"])
        outcome = plan["structuredDataPlan"]["schema"]["properties"]["final_outcome"]
        self.assertIn("appointment_booked", outcome["enum"])
        self.assertIn("transferred_to_human", outcome["enum"])

    def test_create_vapi_session(self):
        config = build_agent_config(make_tenant())
        metadata = {"tenant_id": "tenant-1", "call_sid": "CA100"}

        session = create_vapi_session(config, metadata, "wss://relay.example.com/twilio")

        self.assertEqual(session["streamUrl"], "wss://relay.example.com/twilio")
        self.assertEqual(session["sessionId"], "CA100")
        self.assertIs(session["assistant"], config)
        self.assertEqual(session["metadata"], metadata)


if __name__ == "__main__":
    unittest.main()
