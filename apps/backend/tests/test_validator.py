import json
import sys
import unittest
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[1] / "src"))

from activityforge.generator import FileEntry, GeneratedArtifact, generate
from activityforge.requirements import parse_requirements
from activityforge.validator import (
    client_code,
    server_code,
    validate_artifact,
    validate_field_usage,
)


def standard_requirements():
    return parse_requirements(
        {
            "activityName": "Slack Notifier",
            "inArguments": [{"name": "email", "type": "string", "required": True}],
            "outArguments": [{"name": "status", "type": "string"}],
            "externalAPIs": [{"name": "Slack", "authentication": "webhook", "envVarName": "SLACK"}],
            "configurationSteps": [
                {"label": "Message", "fields": [{"name": "channel", "label": "Channel"}]}
            ],
        }
    )


def decision_requirements():
    return parse_requirements(
        {
            "activityName": "Buyer Split",
            "isDecisionSplit": True,
            "inArguments": [{"name": "contactKey"}],
            "outcomes": [
                {"key": "buyer", "label": "Buyer"},
                {"key": "non_buyer", "label": "Non-Buyer"},
            ],
        }
    )


def codes(issues) -> list[str]:
    return [issue.code for issue in issues]


def with_files(artifact: GeneratedArtifact, changes: dict) -> GeneratedArtifact:
    """Copy of ``artifact`` with files replaced (str) or removed (None)."""
    files = artifact.files
    for path, content in changes.items():
        if content is None:
            files.pop(path)
        else:
            files[path] = content
    return GeneratedArtifact.from_files(files, stack=artifact.stack)


class RoundTripTests(unittest.TestCase):
    def test_generated_artifacts_pass_with_no_errors(self):
        bare = parse_requirements({"activityName": "Bare"})
        for req in (standard_requirements(), decision_requirements(), bare):
            with self.subTest(activity=req.activity_name):
                result = validate_artifact(
                    generate(req),
                    is_decision_split=req.is_decision_split,
                    expected_outcome_labels=[o.label for o in req.outcomes or []],
                )
                self.assertTrue(result.is_valid, result.summary())
                self.assertEqual(result.errors, [])
                self.assertEqual(result.warnings, [])

    def test_result_serializes_is_valid(self):
        result = validate_artifact(generate(standard_requirements()))
        dumped = result.model_dump(by_alias=True)

        self.assertIs(dumped["isValid"], True)
        self.assertEqual(dumped["errors"], [])


class CorruptedArtifactTests(unittest.TestCase):
    def setUp(self) -> None:
        self.artifact = generate(standard_requirements())

    def test_missing_save_route_is_one_error(self):
        corrupted = with_files(self.artifact, {"routes/save.js": None})

        result = validate_artifact(corrupted)

        self.assertFalse(result.is_valid)
        self.assertEqual(codes(result.errors), ["MISSING_SAVE_ENDPOINT"])

    def test_removing_cors_is_only_a_warning(self):
        server = self.artifact.get("server.js")
        server = server.replace("const cors = require('cors');\n", "").replace("app.use(cors());\n", "")

        result = validate_artifact(with_files(self.artifact, {"server.js": server}))

        self.assertTrue(result.is_valid)
        self.assertEqual(codes(result.warnings), ["NO_CORS"])

    def test_manual_cors_header_counts_as_cors(self):
        server = self.artifact.get("server.js")
        server = server.replace("const cors = require('cors');\n", "").replace(
            "app.use(cors());\n",
            "app.use((req, res, next) => { res.header('Access-Control-Allow-Origin', '*'); next(); });\n",
        )

        result = validate_artifact(with_files(self.artifact, {"server.js": server}))

        self.assertEqual(result.warnings, [])

    def test_missing_required_files(self):
        corrupted = with_files(
            self.artifact, {"public/index.html": None, "package.json": None}
        )

        result = validate_artifact(corrupted)

        self.assertEqual(codes(result.errors), ["MISSING_FILE", "MISSING_FILE"])
        self.assertEqual(
            sorted(e.path for e in result.errors), ["package.json", "public/index.html"]
        )

    def test_missing_descriptor(self):
        corrupted = with_files(self.artifact, {"public/config.json": None})

        result = validate_artifact(corrupted)

        self.assertIn("NO_CONFIG_JSON", codes(result.errors))
        self.assertIn("MISSING_FILE", codes(result.errors))

    def test_unparseable_descriptor(self):
        corrupted = with_files(self.artifact, {"public/config.json": "{not json"})

        result = validate_artifact(corrupted)

        self.assertIsNone(corrupted.descriptor)
        self.assertEqual(codes(result.errors), ["INVALID_CONFIG"])

    def test_descriptor_is_read_from_the_shipped_file(self):
        shipped = dict(self.artifact.descriptor)
        shipped["arguments"] = {"execute": {}}
        shipped["userInterfaces"] = {}
        file_tree = [
            FileEntry(path=e.path, content=json.dumps(shipped))
            if e.path == "public/config.json"
            else e
            for e in self.artifact.file_tree
        ]

        stale = GeneratedArtifact(stack="node", file_tree=file_tree, descriptor=self.artifact.descriptor)
        self.assertEqual(
            codes(validate_artifact(stale).errors), ["MISSING_EXECUTE_URL", "MISSING_CONFIG_MODAL"]
        )

        mislabelled = GeneratedArtifact(
            stack="node", file_tree=self.artifact.file_tree, descriptor={"type": "nonsense"}
        )
        self.assertTrue(validate_artifact(mislabelled).is_valid)

    def test_descriptor_rules(self):
        descriptor = dict(self.artifact.descriptor)
        descriptor["workflowApiVersion"] = "1.0"
        del descriptor["metaData"]
        descriptor["configurationArguments"] = {}
        descriptor["userInterfaces"] = {}
        descriptor["lang"] = {}
        descriptor["arguments"] = {"execute": {}}

        result = validate_artifact(
            with_files(self.artifact, {"public/config.json": json.dumps(descriptor)})
        )

        self.assertEqual(
            codes(result.errors),
            ["MISSING_METADATA", "MISSING_EXECUTE_URL", "MISSING_CONFIG_MODAL"],
        )
        self.assertEqual(
            codes(result.warnings),
            ["OLD_WORKFLOW_VERSION", "MISSING_SAVE_URL", "MISSING_LANG_NAME"],
        )

    def test_missing_version_is_an_error(self):
        descriptor = dict(self.artifact.descriptor)
        del descriptor["workflowApiVersion"]

        result = validate_artifact(
            with_files(self.artifact, {"public/config.json": json.dumps(descriptor)})
        )

        self.assertEqual(codes(result.errors), ["MISSING_WORKFLOW_VERSION"])

    def test_standard_activity_with_wrong_type_is_a_warning(self):
        descriptor = dict(self.artifact.descriptor, type="RestDecision")

        result = validate_artifact(
            with_files(self.artifact, {"public/config.json": json.dumps(descriptor)})
        )

        self.assertTrue(result.is_valid)
        self.assertEqual(codes(result.warnings), ["UNEXPECTED_TYPE"])

    def test_server_without_express(self):
        tree = self.artifact.files
        for path in list(tree):
            if path.endswith(".js") and not path.startswith("public/"):
                tree[path] = tree[path].replace("express", "koa")
        tree["server.js"] = tree["server.js"].replace("bodyParser", "parser").replace(
            "body-parser", "koa-body"
        )

        result = validate_artifact(GeneratedArtifact.from_files(tree))

        self.assertEqual(codes(result.errors), ["NO_EXPRESS"])
        self.assertEqual(codes(result.warnings), ["NO_BODY_PARSER"])

    def test_client_rules(self):
        client = "var session = {};\nsession.on('clickedNext', function () {});\n"

        result = validate_artifact(
            with_files(self.artifact, {"public/customActivity.js": client})
        )

        self.assertEqual(codes(result.errors), ["NO_POSTMONGER"])
        self.assertEqual(
            codes(result.warnings),
            ["MISSING_EVENT_HANDLER", "MISSING_EVENT_HANDLER", "MISSING_EVENT_HANDLER",
             "NO_UPDATE_ACTIVITY"],
        )

    def test_manifest_rules(self):
        manifest = json.loads(self.artifact.get("package.json"))
        del manifest["dependencies"]["express"]
        del manifest["scripts"]["start"]
        del manifest["main"]

        result = validate_artifact(
            with_files(self.artifact, {"package.json": json.dumps(manifest)})
        )

        self.assertEqual(codes(result.errors), ["MISSING_DEPENDENCY", "NO_START_SCRIPT"])
        self.assertEqual(codes(result.warnings), ["NO_MAIN_ENTRY"])

    def test_invalid_manifest(self):
        result = validate_artifact(with_files(self.artifact, {"package.json": "[1, 2"}))
        self.assertEqual(codes(result.errors), ["INVALID_PACKAGE_JSON"])

    def test_all_categories_are_reported_together(self):
        corrupted = with_files(
            self.artifact,
            {
                "routes/execute.js": None,
                "package.json": "{}",
                "public/customActivity.js": "// empty\n",
            },
        )

        result = validate_artifact(corrupted)

        self.assertIn("MISSING_EXECUTE_ENDPOINT", codes(result.errors))
        self.assertIn("NO_POSTMONGER", codes(result.errors))
        self.assertIn("MISSING_DEPENDENCY", codes(result.errors))


class DecisionSplitRuleTests(unittest.TestCase):
    def setUp(self) -> None:
        self.artifact = generate(decision_requirements())

    def _with_descriptor(self, descriptor) -> GeneratedArtifact:
        return with_files(self.artifact, {"public/config.json": json.dumps(descriptor)})

    def test_standard_artifact_checked_as_decision_split(self):
        artifact = generate(standard_requirements())

        result = validate_artifact(artifact, is_decision_split=True)

        self.assertEqual(codes(result.errors), ["INVALID_TYPE_FOR_DECISION", "MISSING_OUTCOMES"])

    def test_single_outcome_is_an_error(self):
        descriptor = dict(self.artifact.descriptor)
        descriptor["outcomes"] = descriptor["outcomes"][:1]

        result = validate_artifact(self._with_descriptor(descriptor), is_decision_split=True)

        self.assertEqual(codes(result.errors), ["MISSING_OUTCOMES"])

    def test_expected_labels_match_case_insensitively(self):
        result = validate_artifact(
            self.artifact,
            is_decision_split=True,
            expected_outcome_labels=["BUYER", "non_buyer"],
        )
        self.assertEqual(result.warnings, [])

    def test_unmatched_expected_label_is_a_warning(self):
        result = validate_artifact(
            self.artifact,
            is_decision_split=True,
            expected_outcome_labels=["Buyer", "Window Shopper"],
        )

        self.assertTrue(result.is_valid)
        self.assertEqual(codes(result.warnings), ["MISSING_EXPECTED_OUTCOME"])
        self.assertIn("Window Shopper", result.warnings[0].message)


class FieldUsageTests(unittest.TestCase):
    def test_generated_code_uses_every_field(self):
        artifact = generate(standard_requirements())

        result = validate_field_usage(
            ["channel"], server_code(artifact.file_tree), client_code(artifact.file_tree)
        )

        self.assertEqual(result.warnings, [])

    def test_unused_and_client_only_fields(self):
        server = "const payload = { channel: args.channel };"
        client = "readField('channel'); readField('subject');"

        result = validate_field_usage(["channel", "subject", "footer"], server, client)

        self.assertTrue(result.is_valid)
        self.assertEqual(
            [(w.code, w.path) for w in result.warnings],
            [("FIELD_NOT_IN_SERVER", "subject"), ("UNUSED_CONFIG_FIELD", "footer")],
        )

    def test_field_names_match_whole_words(self):
        result = validate_field_usage(["note"], "const notes = 1;", "var footnote;")
        self.assertEqual([w.code for w in result.warnings], ["UNUSED_CONFIG_FIELD"])

    def test_server_code_includes_route_modules(self):
        tree = generate(standard_requirements()).file_tree
        code = server_code(tree)

        self.assertIn("app.use('/', require('./routes/save'));", code)
        self.assertIn("router.post('/save'", code)
        self.assertIsNone(server_code([e for e in tree if e.path != "server.js"]))


if __name__ == "__main__":
    unittest.main()
