"""Decision split (RestDecision) activity: routes each contact to one outcome."""

from __future__ import annotations

from typing import Any

from ..requirements.schema import DEFAULT_OUTCOMES, Outcome
from .base import ActivityTemplate
from .server import api_call, block, request_context, route_preamble
from .text import js_comment, js_literal


class DecisionSplitTemplate(ActivityTemplate):
    """The first declared outcome is the default for unmatched, invalid and failed runs."""

    activity_type = "RestDecision"

    @property
    def outcomes(self) -> list[Outcome]:
        declared = self.requirements.outcomes or []
        if len(declared) >= 2:
            return list(declared)
        return [Outcome(key=key, label=label, condition=cond) for key, label, cond in DEFAULT_OUTCOMES]

    @property
    def default_outcome(self) -> str:
        return self.outcomes[0].key

    def out_arguments(self) -> tuple[list[dict[str, Any]], list[dict[str, Any]]]:
        declared = [{"branchResult": ""}]
        schema = [{"branchResult": {"dataType": "Text", "direction": "out", "access": "visible"}}]
        return declared, schema

    def execute_fallback(self) -> dict[str, Any]:
        return {"branchResult": self.default_outcome}

    def _resolver(self) -> str:
        default, *others = self.outcomes
        lines = [
            "/**",
            " * Decide which branch the contact takes.",
            " * Replace the placeholder conditions with your business rules; anything",
            " * that is not one of OUTCOMES falls back to DEFAULT_OUTCOME.",
            " */",
            "function resolveOutcome(args, apiResult) {",
        ]
        for outcome in others:
            condition = outcome.condition or f"Check for {outcome.label}"
            lines += [
                f"  // {js_comment(outcome.label)}: {js_comment(condition)}",
                "  // if (someCondition(args, apiResult)) {",
                f"  //   return {js_literal(outcome.key)};",
                "  // }",
                "",
            ]
        default_note = f": {js_comment(default.condition)}" if default.condition else ""
        lines += [
            f"  // Default outcome, {js_comment(default.label)}{default_note}",
            "  return DEFAULT_OUTCOME;",
            "}",
        ]
        return "\n".join(lines)

    def execute_route(self) -> str:
        req = self.requirements
        keys = [o.key for o in self.outcomes]
        call = api_call(req.primary_api)
        if call:
            fetch = (
                "let apiResult = {};\n"
                "try {\n"
                + block(call, 2)
                + "} catch (apiError) {\n"
                "  console.error('[EXECUTE] API call failed:', apiError.message);\n"
                "}"
            )
        else:
            fetch = "const apiResult = {};"

        return (
            route_preamble(req, " (Decision Split)")
            + f"""
// Outcome keys declared in config.json; the first one is the default
const OUTCOMES = {js_literal(keys)};
const DEFAULT_OUTCOME = OUTCOMES[0];

{self._resolver()}

router.post('/execute', async (req, res) => {{
  const startTime = Date.now();

  try {{
"""
            + block(request_context(), 4)
            + """    if (missing.length > 0) {
      console.warn(`[EXECUTE] Missing required argument(s): ${missing.join(', ')}; using default outcome`);
      return res.status(200).json({ branchResult: DEFAULT_OUTCOME });
    }

"""
            + block(fetch, 4)
            + """
    let branchResult = resolveOutcome(args, apiResult);
    if (OUTCOMES.indexOf(branchResult) === -1) {
      console.warn(`[EXECUTE] Invalid outcome "${branchResult}", using default`);
      branchResult = DEFAULT_OUTCOME;
    }

    console.log(`[EXECUTE] Decision result: ${branchResult} (${Date.now() - startTime}ms)`);
    return res.status(200).json({ branchResult });
  } catch (error) {
    // Fail open: the contact continues down the default branch
    console.error('[EXECUTE ERROR]', error && error.message);
    return res.status(200).json({ branchResult: DEFAULT_OUTCOME });
  }
});

module.exports = router;
"""
        )
