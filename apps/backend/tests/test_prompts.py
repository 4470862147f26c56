import json
import sys
import unittest
from pathlib import Path

import httpx

sys.path.append(str(Path(__file__).resolve().parents[1] / "src"))

from activityforge.config import Settings
from activityforge.generator import generate
from activityforge.prompts import (
    GenerationClient,
    GenerationOutputError,
    GenerationServiceError,
    Prompt,
    build_customization_prompt,
    build_extraction_prompt,
    build_review_prompt,
    parse_customization_output,
    parse_extraction_output,
    parse_generation_output,
    parse_review_output,
    repair_requirements,
    strip_code_fences,
)
from activityforge.requirements import parse_requirements


class ResponseParsingTests(unittest.TestCase):
    def test_strip_code_fences(self):
        self.assertEqual(strip_code_fences('```json\n{"a": 1}\n```'), '{"a": 1}')
        self.assertEqual(strip_code_fences('Here you go:\n```\n[1]\n```\nthanks'), "[1]")
        self.assertEqual(strip_code_fences('  {"a": 1}  '), '{"a": 1}')

    def test_parse_generation_output(self):
        self.assertEqual(parse_generation_output('```json\n{"ok": true}\n```'), {"ok": True})

    def test_fences_inside_file_content_are_kept(self):
        files = {"README.md": "# X\n\n```bash\nnpm install\n```\n", "server.js": "// ok\n"}
        raw = json.dumps(files)

        for text in (raw, f"```json\n{raw}\n```", f"Here are the files:\n```json\n{raw}\n```\nDone."):
            with self.subTest(text=text[:12]):
                self.assertEqual(parse_customization_output(text), files)

    def test_unparseable_output_carries_excerpt(self):
        raw = "Sorry, I cannot help with that. " * 40

        with self.assertRaises(GenerationOutputError) as ctx:
            parse_generation_output(raw)

        self.assertTrue(str(ctx.exception).startswith("unparseable generation output"))
        self.assertEqual(ctx.exception.excerpt, raw[:500])
        self.assertEqual(len(ctx.exception.excerpt), 500)

    def test_empty_output_is_unparseable(self):
        with self.assertRaises(GenerationOutputError):
            parse_generation_output("   ")


class RepairTests(unittest.TestCase):
    def test_repair_normalizes_untrusted_output(self):
        raw = {
            "activityName": "Repaired",
            "category": "marketing",
            "inArguments": [{"name": "email"}, {"name": "score", "type": "number", "source": "Contact.Attribute.Score"}],
            "configurationSteps": "none",
            "isDecisionSplit": True,
            "outcomes": [{"key": "High Value", "label": "High value"}],
        }

        fixed = repair_requirements(raw)

        self.assertEqual(fixed["category"], "custom")
        self.assertEqual(fixed["inArguments"][0]["source"], "Contact.Attribute.email")
        self.assertEqual(fixed["inArguments"][0]["type"], "string")
        self.assertTrue(fixed["inArguments"][0]["required"])
        self.assertEqual(fixed["inArguments"][1]["source"], "Contact.Attribute.Score")
        self.assertEqual(fixed["configurationSteps"], [])
        self.assertEqual(fixed["executionSteps"], [])
        self.assertEqual([o["key"] for o in fixed["outcomes"]], ["high_value", "outcome_yes"])

    def test_repair_does_not_mutate_input(self):
        raw = {"activityName": "Same", "category": "bogus", "isDecisionSplit": True}

        repair_requirements(raw)

        self.assertEqual(raw, {"activityName": "Same", "category": "bogus", "isDecisionSplit": True})

    def test_missing_outcomes_get_the_default_pair(self):
        fixed = repair_requirements({"activityName": "Split", "isDecisionSplit": True})

        self.assertEqual(
            [(o["key"], o["label"]) for o in fixed["outcomes"]],
            [("outcome_yes", "Yes"), ("outcome_no", "No")],
        )

    def test_outcome_keys_are_deduplicated_and_labelled(self):
        fixed = repair_requirements(
            {
                "activityName": "Split",
                "isDecisionSplit": True,
                "outcomes": [{"key": "Yes"}, {"key": "yes", "label": "Also"}, {"label": "3 Stars"}],
            }
        )

        self.assertEqual([o["key"] for o in fixed["outcomes"]], ["yes", "yes_2", "outcome_3_stars"])
        self.assertEqual(fixed["outcomes"][0]["label"], "Yes")

    def test_extraction_output_is_repaired_then_strictly_validated(self):
        text = "```json\n" + json.dumps(
            {
                "activityName": "Loyalty Check",
                "category": "loyalty",
                "inArguments": [{"name": "contactKey"}],
                "isDecisionSplit": True,
                "outcomes": [],
            }
        ) + "\n```"

        result = parse_extraction_output(text)

        self.assertTrue(result.ok, result.errors)
        self.assertEqual(result.requirements.category, "custom")
        self.assertEqual(len(result.requirements.outcomes), 2)

    def test_repair_never_hides_schema_errors(self):
        result = parse_extraction_output(json.dumps({"activityName": "Bad", "inArguments": [{"name": "2fa code"}]}))

        self.assertFalse(result.ok)
        self.assertEqual([e.path for e in result.errors], ["inArguments.0.name"])

    def test_extraction_output_must_be_an_object(self):
        with self.assertRaises(GenerationOutputError):
            parse_extraction_output("[1, 2, 3]")

    def test_customization_output_keeps_text_files(self):
        files = parse_customization_output(
            json.dumps({"routes/execute.js": "// custom\n", "broken": 42})
        )
        self.assertEqual(files, {"routes/execute.js": "// custom\n"})

    def test_customization_output_drops_unsafe_paths(self):
        with self.assertLogs("activityforge.prompts.parsing", level="WARNING") as logs:
            files = parse_customization_output(
                json.dumps(
                    {
                        "routes/execute.js": "// custom\n",
                        "../../evil.sh": "rm -rf /",
                        "/etc/passwd": "root",
                        "routes\\save.js": "x",
                        "C:/boot.ini": "x",
                        "public/./config.json": "{}",
                    }
                )
            )

        self.assertEqual(files, {"routes/execute.js": "// custom\n"})
        self.assertEqual(len(logs.output), 5)

    def test_review_output(self):
        report = parse_review_output('{"isValid": false, "errors": ["no /save"], "warnings": []}')

        self.assertFalse(report.is_valid)
        self.assertEqual(report.errors, ["no /save"])

        with self.assertRaises(GenerationOutputError):
            parse_review_output('{"isValid": "maybe", "errors": "nope"}')


class PromptBuilderTests(unittest.TestCase):
    def setUp(self) -> None:
        self.requirements = parse_requirements(
            {"activityName": "Slack Notifier", "inArguments": [{"name": "email"}]}
        )

    def test_extraction_prompt(self):
        prompt = build_extraction_prompt("Send a Slack message", activity_name="Slack Notifier")

        self.assertIn('"activityName"', prompt.system)
        self.assertIn("isDecisionSplit", prompt.system)
        self.assertIn("Send a Slack message", prompt.user)
        self.assertIn("Suggested activity name: Slack Notifier", prompt.user)
        self.assertEqual([m["role"] for m in prompt.messages()], ["system", "user"])

    def test_customization_prompt_includes_template_files(self):
        files = generate(self.requirements).files

        prompt = build_customization_prompt(self.requirements, "node", files)

        self.assertIn("Do NOT start from scratch", prompt.system)
        self.assertIn("### routes/execute.js", prompt.user)
        self.assertIn('"activityName": "Slack Notifier"', prompt.user)
        self.assertIn("Stack: node", prompt.user)

    def test_review_prompt(self):
        prompt = build_review_prompt({"server.js": "// code"}, self.requirements)

        self.assertIn('"server.js": "// code"', prompt.user)
        self.assertIn('"isValid"', prompt.user)


class GenerationClientTests(unittest.IsolatedAsyncioTestCase):
    def _client(self, handler) -> GenerationClient:
        http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return GenerationClient("test-key", "https://llm.example.com/v1/", "test-model", http)

    async def test_posts_chat_completion_and_returns_content(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["auth"] = request.headers["Authorization"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"choices": [{"message": {"content": '{"ok": true}'}}]})

        client = self._client(handler)
        text = await client.complete(Prompt(system="sys", user="usr"))
        await client.aclose()

        self.assertEqual(text, '{"ok": true}')
        self.assertEqual(seen["url"], "https://llm.example.com/v1/chat/completions")
        self.assertEqual(seen["auth"], "Bearer test-key")
        self.assertEqual(seen["body"]["model"], "test-model")
        self.assertEqual(seen["body"]["temperature"], 0.2)
        self.assertEqual(
            seen["body"]["messages"],
            [{"role": "system", "content": "sys"}, {"role": "user", "content": "usr"}],
        )

    async def test_http_failures_map_to_error_types(self):
        cases = {429: "rate_limit", 402: "credits_exhausted", 500: "service_error"}
        for status, error_type in cases.items():
            with self.subTest(status=status):
                client = self._client(lambda request, status=status: httpx.Response(status, text="err"))
                with self.assertRaises(GenerationServiceError) as ctx:
                    await client.complete(Prompt(system="s", user="u"))
                self.assertEqual(ctx.exception.error_type, error_type)

    async def test_empty_content_is_an_error(self):
        client = self._client(
            lambda request: httpx.Response(200, json={"choices": [{"message": {"content": ""}}]})
        )
        with self.assertRaises(GenerationServiceError) as ctx:
            await client.complete(Prompt(system="s", user="u"))
        self.assertEqual(ctx.exception.error_type, "empty_response")

    async def test_transport_errors_are_service_errors(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with self.assertRaises(GenerationServiceError) as ctx:
            await self._client(handler).complete(Prompt(system="s", user="u"))
        self.assertEqual(ctx.exception.error_type, "service_error")

    async def test_from_settings_requires_api_key(self):
        with self.assertRaises(GenerationServiceError) as ctx:
            GenerationClient.from_settings(Settings(generation_api_key=None))
        self.assertEqual(ctx.exception.error_type, "not_configured")

        client = GenerationClient.from_settings(
            Settings(generation_api_key="k", generation_model="m", generation_temperature=0.5)
        )
        self.assertEqual(client.model, "m")
        self.assertEqual(client.temperature, 0.5)
        await client.aclose()


if __name__ == "__main__":
    unittest.main()
