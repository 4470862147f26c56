"""Standard (REST) activity: calls out and returns output arguments."""

from __future__ import annotations

from typing import Any

from .base import ActivityTemplate
from .descriptor import data_type
from .server import api_call, block, request_context, route_preamble
from .text import js_literal


class StandardActivityTemplate(ActivityTemplate):
    activity_type = "REST"

    def out_arguments(self) -> tuple[list[dict[str, Any]], list[dict[str, Any]]]:
        out_args = self.requirements.out_arguments
        declared = [{arg.name: ""} for arg in out_args]
        schema = [
            {arg.name: {"dataType": data_type(arg.type), "direction": "out", "access": "visible"}}
            for arg in out_args
        ]
        return declared, schema

    def _response(self) -> str:
        names = [arg.name for arg in self.requirements.out_arguments]
        if not names:
            return "return res.status(200).json({ success: true });"
        return f"""const outArguments = {{}};
{js_literal(names)}.forEach((name) => {{
  outArguments[name] = apiResult[name] !== undefined ? apiResult[name] : '';
}});

console.log(`[EXECUTE] Completed in ${{Date.now() - startTime}}ms`);
return res.status(200).json(outArguments);"""

    def execute_route(self) -> str:
        req = self.requirements
        if req.primary_api is None:
            initial = "// No external API configured: replace with your own logic\nlet apiResult = { success: true };"
        else:
            initial = "let apiResult = {};"

        return (
            route_preamble(req, "")
            + """
router.post('/execute', async (req, res) => {
  const startTime = Date.now();

  try {
"""
            + block(request_context(), 4)
            + """    if (missing.length > 0) {
      console.warn(`[EXECUTE] Missing required argument(s): ${missing.join(', ')}`);
      return res.status(400).json({
        success: false,
        error: `Missing required argument(s): ${missing.join(', ')}`
      });
    }

"""
            + block(initial, 4)
            + block(api_call(req.primary_api), 4)
            + "\n"
            + block(self._response(), 4)
            + """  } catch (error) {
    console.error('[EXECUTE ERROR]', error.message);
    return res.status(500).json({
      success: false,
      error: error.message,
      executionTime: Date.now() - startTime
    });
  }
});

module.exports = router;
"""
        )
